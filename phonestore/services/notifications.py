from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import FSInputFile
from jinja2 import Environment, FileSystemLoader, select_autoescape

from phonestore.constants import PAYMENT_TYPES, TELEGRAM_CAPTION_LIMIT
from phonestore.utils.formatters import money, order_date

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["inr"] = money
_env.filters["order_date"] = order_date
_env.filters["payment_label"] = lambda t: PAYMENT_TYPES.get(t, t)


@dataclass(frozen=True)
class TelegramTarget:
    bot_token: str
    chat_id: str


def resolve_target(admin_settings: Dict[str, Any], bot_token: str = "", chat_id: str = "") -> Optional[TelegramTarget]:
    """Admin panel credentials win over the environment ones."""
    token = admin_settings.get("telegramBotToken") or bot_token
    chat = admin_settings.get("telegramChatId") or chat_id
    if not token or not chat:
        return None
    return TelegramTarget(bot_token=token, chat_id=chat)


def format_order_message(order: Dict[str, Any]) -> str:
    return _env.get_template("order.html").render(order=order).strip()


def format_batch_order_message(orders: List[Dict[str, Any]]) -> str:
    if not orders:
        return ""
    return _env.get_template("batch_order.html").render(
        orders=orders,
        first=orders[0],
        total_paid=sum(o["paidAmount"] for o in orders),
        total_balance=sum(o["remainingBalance"] for o in orders),
    ).strip()


async def _send(target: TelegramTarget, text: str, photo_path: Optional[str], photo_caption: str) -> None:
    bot = Bot(token=target.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    try:
        if photo_path and os.path.exists(photo_path):
            if len(text) <= TELEGRAM_CAPTION_LIMIT:
                await bot.send_photo(target.chat_id, FSInputFile(photo_path), caption=text)
                return
            await bot.send_message(target.chat_id, text)
            await bot.send_photo(target.chat_id, FSInputFile(photo_path), caption=photo_caption)
        else:
            await bot.send_message(target.chat_id, text)
    finally:
        await bot.session.close()


async def notify_order(order: Dict[str, Any], target: Optional[TelegramTarget], screenshot_path: Optional[str] = None) -> bool:
    if target is None:
        logger.error("Telegram credentials not configured")
        return False
    try:
        text = format_order_message(order)
        await _send(target, text, screenshot_path, f"Payment screenshot for order {order['id']}")
    except Exception:
        logger.exception("Error sending Telegram notification for order %s", order.get("id"))
        return False
    logger.info("Order notification sent to Telegram successfully")
    return True


async def notify_orders(
    orders: List[Dict[str, Any]], target: Optional[TelegramTarget], screenshot_path: Optional[str] = None
) -> bool:
    if not orders:
        return False
    if target is None:
        logger.error("Telegram credentials not configured")
        return False
    try:
        text = format_batch_order_message(orders)
        await _send(target, text, screenshot_path, f"Payment screenshot for {len(orders)} orders")
    except Exception:
        logger.exception("Error sending Telegram batch notification")
        return False
    logger.info("Batch order notification sent to Telegram successfully")
    return True
