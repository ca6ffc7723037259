import requests
from dotenv import load_dotenv

from utils.config import Config
from utils.logging import get_logger

load_dotenv()

logger = get_logger("utils.telegram")

MAX_MESSAGE_LENGTH = 4096


class TelegramError(Exception):
    """Raised when the Bot API rejects or fails to receive a message."""


def send_telegram_message(chat_id, message, bot_token=None, parse_mode="HTML", disable_notification=False):
    """Send ``message`` to a single Telegram chat (a user id for private chats)."""
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[: MAX_MESSAGE_LENGTH - 3] + "..."

    bot_token = bot_token or Config.get_telegram_bot_token()
    if not bot_token:
        raise TelegramError("Missing Telegram bot token (TELEGRAM_BOT_TOKEN_ABYSS)")

    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": message,
        "disable_notification": disable_notification,
    }
    if parse_mode:
        payload["parse_mode"] = parse_mode

    logger.debug("Sending telegram message to %s", chat_id)
    try:
        response = requests.post(url, json=payload, timeout=Config.get_request_timeout())
    except requests.RequestException as e:
        raise TelegramError(f"Failed to send telegram message: {e}") from e
    if response.status_code != 200:
        raise TelegramError(f"Failed to send telegram message: {response.status_code} - {response.text}")
