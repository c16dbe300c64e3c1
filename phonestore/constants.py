PAYMENT_FULL = "full"
PAYMENT_ADVANCE = "advance"

PAYMENT_TYPES = {
    PAYMENT_FULL: "Full Payment",
    PAYMENT_ADVANCE: "Advance Payment",
}

# data/ file names
ORDERS_FILE = "orders.json"
CART_FILE = "cart.json"
ADMIN_SETTINGS_FILE = "admin-settings.json"
PRODUCT_PRICES_FILE = "product-prices.json"

UPLOAD_SUBDIRS = ("payment-screenshots", "qr-codes", "product-images")

MAX_SCREENSHOT_BYTES = 10 * 1024 * 1024
MAX_PRODUCT_IMAGE_BYTES = 10 * 1024 * 1024
MAX_QR_BYTES = 5 * 1024 * 1024

QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=300x300&data={data}"

# Telegram photo captions are cut at 1024 chars
TELEGRAM_CAPTION_LIMIT = 1024
