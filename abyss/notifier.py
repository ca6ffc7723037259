"""Delivery of triggered capacity alerts to users over Telegram."""

from typing import Callable, Optional

from abyss.assets import Asset
from abyss.errors import DeliveryFailure
from utils.telegram import TelegramError, send_telegram_message


# (user_id, asset, available_capacity, threshold), amounts in base units
DeliveryCallback = Callable[[int, Asset, int, int], None]


def format_capacity_alert(asset: Asset, available_capacity: int, threshold: int) -> str:
    """Build the HTML message a user receives when an alert fires."""
    return (
        f"🎉 <b>{asset.symbol} Vault Alert!</b>\n\n"
        f"The vault now has <b>{asset.format(available_capacity)} {asset.symbol}</b> available for deposit.\n\n"
        f"You requested an alert when capacity reached {asset.format(threshold)} {asset.symbol}.\n\n"
        f"Deposit now before it fills up!"
    )


class TelegramNotifier:
    """Default delivery callback: one private Telegram message per triggered alert."""

    def __init__(self, bot_token: Optional[str] = None):
        self.bot_token = bot_token

    def __call__(self, user_id: int, asset: Asset, available_capacity: int, threshold: int) -> None:
        message = format_capacity_alert(asset, available_capacity, threshold)
        try:
            send_telegram_message(user_id, message, bot_token=self.bot_token, parse_mode="HTML")
        except TelegramError as e:
            raise DeliveryFailure(f"Failed to notify user {user_id} about {asset.symbol}: {e}") from e
