"""
Delivery Module

Relays finished questionnaires to the consultant's Telegram chat through the
Telegram Bot API.

Credentials come from the process environment:
- TELEGRAM_BOT_TOKEN
- TELEGRAM_CHAT_ID

Every operation returns a (success, error_message) tuple; nothing is retried
automatically and no local state changes, so callers may simply call again.
"""

import logging
import os
from typing import Optional, Tuple

import httpx

from wellness_intake.translations import get_translations


logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = 'https://api.telegram.org'

TEXT_TIMEOUT_SECONDS = 30.0
ATTACHMENT_TIMEOUT_SECONDS = 120.0

IMAGE_TYPES = frozenset(['image/jpeg', 'image/png', 'image/gif', 'image/webp'])

DeliveryResult = Tuple[bool, Optional[str]]


def _response_json(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class TelegramDelivery:
    """Sends messages and files to a fixed Telegram chat."""

    def __init__(self, bot_token: Optional[str] = None, chat_id: Optional[str] = None,
                 api_base: str = TELEGRAM_API_BASE,
                 transport: Optional[httpx.BaseTransport] = None):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self.api_base = api_base.rstrip('/')
        self.transport = transport

    def _credentials(self) -> Tuple[str, str]:
        token = self._bot_token if self._bot_token is not None else os.environ.get('TELEGRAM_BOT_TOKEN', '')
        chat_id = self._chat_id if self._chat_id is not None else os.environ.get('TELEGRAM_CHAT_ID', '')
        return (token or '').strip(), (chat_id or '').strip()

    def is_configured(self) -> bool:
        """Check if both bot token and chat id are set."""
        token, chat_id = self._credentials()
        return bool(token and chat_id)

    def _url(self, token: str, method: str) -> str:
        return f'{self.api_base}/bot{token}/{method}'

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=timeout, transport=self.transport)

    def send_text(self, message: str, language: str = 'ru') -> DeliveryResult:
        """
        Send a Markdown message to the chat.

        Args:
            message: Report text (Telegram Markdown)
            language: Language for error messages

        Returns:
            Tuple of (success: bool, error_message: str or None)
        """
        t = get_translations(language)
        token, chat_id = self._credentials()
        if not token or not chat_id:
            return False, t['configError']

        try:
            with self._client(TEXT_TIMEOUT_SECONDS) as client:
                response = client.post(
                    self._url(token, 'sendMessage'),
                    json={
                        'chat_id': chat_id,
                        'text': message,
                        'parse_mode': 'Markdown',
                    },
                )
        except httpx.TimeoutException:
            logger.error('Telegram sendMessage timed out')
            return False, t['timeoutError']
        except httpx.HTTPError as e:
            logger.error(f'Telegram sendMessage failed: {e}')
            return False, str(e) or t['networkError']

        data = _response_json(response)
        if not response.is_success or not data.get('ok'):
            detail = data.get('description') or response.status_code
            logger.error(f'Telegram API rejected message: {detail}')
            return False, f'{t["telegramApiError"]}: {detail}'

        return True, None

    def send_attachment(self, content: bytes, filename: str, content_type: str,
                        caption: Optional[str] = None, language: str = 'ru') -> DeliveryResult:
        """
        Send a file to the chat. Images go through sendPhoto for an inline preview.

        Args:
            content: File bytes
            filename: Original file name
            content_type: Declared media type
            caption: Optional caption
            language: Language for error messages

        Returns:
            Tuple of (success: bool, error_message: str or None)
        """
        t = get_translations(language)
        token, chat_id = self._credentials()
        if not token or not chat_id:
            return False, t['configError']

        is_image = content_type in IMAGE_TYPES
        method = 'sendPhoto' if is_image else 'sendDocument'
        field_name = 'photo' if is_image else 'document'

        data = {'chat_id': chat_id}
        if caption and caption.strip():
            data['caption'] = caption.strip()
        files = {field_name: (filename, content, content_type or 'application/octet-stream')}

        try:
            with self._client(ATTACHMENT_TIMEOUT_SECONDS) as client:
                response = client.post(self._url(token, method), data=data, files=files)
        except httpx.TimeoutException:
            logger.error(f'Telegram {method} timed out')
            return False, t['timeoutError']
        except httpx.HTTPError as e:
            logger.error(f'Telegram {method} failed: {e}')
            return False, str(e) or t['fileSendError']

        body = _response_json(response)
        if not response.is_success or not body.get('ok'):
            detail = body.get('description') or f'HTTP {response.status_code}'
            logger.error(f'Telegram API rejected file: {detail}')
            return False, detail

        return True, None

