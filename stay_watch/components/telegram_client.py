"""
Telegram Bot API client for the Stay Watch system.

This module sends text and photo messages with an optional inline URL
button. Failed sends are reported through DeliveryResult and never retried.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import requests

from ..models.delivery import DeliveryResult

logger = logging.getLogger(__name__)

# (label, url)
Button = Tuple[str, str]


class TelegramClient:
    """Thin wrapper over the Telegram Bot API send methods."""

    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Telegram client.

        Args:
            bot_token: Telegram bot token
            api_base: Bot API base URL
            timeout: Request timeout in seconds
            session: HTTP session to reuse
        """
        self.bot_token = bot_token
        self.timeout = timeout
        self.base_url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self.session = session or requests.Session()

    @staticmethod
    def _reply_markup(button: Optional[Button]) -> Optional[Dict[str, Any]]:
        if button is None:
            return None
        text, url = button
        return {"inline_keyboard": [[{"text": text, "url": url}]]}

    def send_text(self, chat_id: str, text: str, button: Optional[Button] = None) -> DeliveryResult:
        """Send an HTML-formatted text message."""
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        return self._call("sendMessage", payload, button)

    def send_photo(
        self,
        chat_id: str,
        photo_url: str,
        caption: str,
        button: Optional[Button] = None,
    ) -> DeliveryResult:
        """Send a photo by URL with an HTML-formatted caption."""
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "photo": photo_url,
            "caption": caption,
            "parse_mode": "HTML",
        }
        return self._call("sendPhoto", payload, button)

    def _call(self, method: str, payload: Dict[str, Any], button: Optional[Button]) -> DeliveryResult:
        reply_markup = self._reply_markup(button)
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup

        chat_id = str(payload["chat_id"])
        try:
            response = self.session.post(
                f"{self.base_url}/{method}", json=payload, timeout=self.timeout
            )
            result = response.json()
            if not response.ok or not result.get("ok"):
                raise Exception(
                    f"Telegram API error: {result.get('description', 'Unknown error')}"
                )
        except Exception as e:
            error_msg = f"{method} to chat {chat_id} failed: {e}"[:500]
            logger.error(error_msg)
            result = DeliveryResult(
                success=False,
                delivery_time=datetime.now(),
                error_message=error_msg,
                chat_id=chat_id,
            )
            result.validate()
            return result

        message_id = (result.get("result") or {}).get("message_id")
        logger.info(f"{method} delivered to Telegram chat {chat_id}")
        delivery = DeliveryResult(
            success=True,
            delivery_time=datetime.now(),
            error_message=None,
            chat_id=chat_id,
            message_id=message_id,
        )
        delivery.validate()
        return delivery

    def test_connection(self) -> bool:
        """Test connection to Telegram Bot API."""
        try:
            response = self.session.get(f"{self.base_url}/getMe", timeout=10)
            response.raise_for_status()

            result = response.json()
            if result.get("ok"):
                bot_info = result.get("result", {})
                logger.info(
                    f"Connected to Telegram bot: {bot_info.get('username', 'Unknown')}"
                )
                return True

            logger.error(
                f"Telegram API error: {result.get('description', 'Unknown error')}"
            )
            return False

        except Exception as e:
            logger.error(f"Failed to connect to Telegram: {e}")
            return False
