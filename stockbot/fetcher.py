import logging
import time
from typing import Optional, Dict

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)


def build_proxy_url(proxy_prefix: str, target_url: str) -> str:
    """Wrap the full target page URL with the rendering proxy prefix."""
    return f"{proxy_prefix}{target_url}"


class FetchResult:
    def __init__(
        self,
        url: str,
        status_code: int,
        content: bytes = b'',
        fetch_time: float = 0.0,
        encoding: str = None
    ):
        """Initialize a FetchResult with the raw body and its detected encoding."""
        self.url = url
        self.status_code = status_code
        self.content = content
        self.fetch_time = fetch_time
        self.encoding = encoding

    @property
    def size(self) -> int:
        """Get the size of the response content in bytes."""
        return len(self.content)


class HTTPFetcher:
    def __init__(
        self,
        user_agent: str,
        timeout: float = 30.0,
        max_redirects: int = 5,
        transport: httpx.AsyncBaseTransport = None
    ):
        """Initialize the HTTP fetcher. A single attempt per fetch, no retries."""
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_redirects = max_redirects

        headers = {
                'User-Agent': self.user_agent,
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                'Accept-Language': 'ru-RU,ru;q=0.9,en;q=0.5',
            }
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            max_redirects=self.max_redirects,
            headers=headers,
            transport=transport
        )

    async def __aenter__(self) -> "HTTPFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a URL and return a FetchResult; raise FetchError on any failure."""
        start_time = time.time()

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout after {self.timeout}s for {url}")
            raise FetchError(f"Timeout after {self.timeout}s: {e}", url=url) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"HTTP {status} for {url}")
            raise FetchError(f"HTTP {status}", url=url, status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning(f"Connection error for {url}: {e}")
            raise FetchError(f"Connection error: {e}", url=url) from e

        fetch_time = time.time() - start_time
        content = response.content

        return FetchResult(
            url=url,
            status_code=response.status_code,
            content=content,
            fetch_time=fetch_time,
            encoding=self._extract_encoding(response.headers, content)
        )

    def _extract_encoding(self, headers: Dict[str, str], content: bytes) -> Optional[str]:
        """Extract character encoding from HTTP headers or HTML content."""
        content_type = headers.get('content-type', '')
        if 'charset=' in content_type.lower():
            charset = content_type.lower().split('charset=')[1].split(';')[0].strip(' \'"')
            if charset:
                return charset

        if content and len(content) > 100:
            content_str = content[:1024].decode('utf-8', errors='ignore').lower()

            if 'charset=' in content_str:
                start = content_str.find('charset=') + 8
                if content_str[start:start + 1] in ('"', "'"):
                    start += 1
                end = content_str.find('"', start)
                if end == -1:
                    end = content_str.find("'", start)
                if end == -1:
                    end = content_str.find('>', start)
                if end == -1:
                    end = start + 20

                charset = content_str[start:end].strip(' \'">/')
                if charset:
                    return charset

        return 'utf-8'
