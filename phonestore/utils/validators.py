import re

PHONE_RE = re.compile(r"^[6-9]\d{9}$")
PIN_CODE_RE = re.compile(r"^\d{6}$")


def require_indian_mobile(v: str) -> str:
    if not PHONE_RE.fullmatch(v):
        raise ValueError("Enter a valid 10-digit Indian mobile number")
    return v


def require_pin_code(v: str) -> str:
    if not PIN_CODE_RE.fullmatch(v):
        raise ValueError("Enter a valid 6-digit PIN code")
    return v
