from typing import Any, Dict, Optional

import httpx
import structlog

from .errors import NotifierError

logger = structlog.get_logger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"


class TelegramNotifier:
    """Sends HTML messages to one chat through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: Optional[float] = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.chat_id = chat_id
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}/sendMessage"
        client_kwargs: Dict[str, Any] = {'transport': transport}
        if timeout is not None:
            client_kwargs['timeout'] = httpx.Timeout(timeout)
        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> "TelegramNotifier":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {
            'chat_id': self.chat_id,
            'text': text,
            'parse_mode': 'HTML',
            'disable_web_page_preview': True,
        }

    async def send_message(self, text: str) -> Dict[str, Any]:
        """POST the message and return the decoded API response.

        Raises:
            NotifierError: carrying the API error body when Telegram answered,
                or the transport error message when it could not be reached.
        """
        try:
            response = await self._client.post(self._url, json=self.build_payload(text))
        except httpx.HTTPError as e:
            logger.error("telegram_transport_error", chat_id=self.chat_id, error=str(e))
            raise NotifierError(f"Telegram request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.is_error or not isinstance(body, dict) or not body.get('ok', False):
            logger.error("telegram_api_error",
                         chat_id=self.chat_id,
                         status_code=response.status_code,
                         body=body)
            raise NotifierError(
                f"Telegram API returned {response.status_code}: {body}",
                payload=body,
                status_code=response.status_code,
            )

        result = body.get('result')
        logger.info("message_sent", chat_id=self.chat_id,
                    message_id=result.get('message_id') if isinstance(result, dict) else None)
        return body
