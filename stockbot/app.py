"""
Entrypoint: load config and credentials, init logging, then run the
fetch -> extract -> format -> send pipeline once and exit.
"""

import asyncio
import logging
import sys
from contextlib import AsyncExitStack
from datetime import datetime
from typing import Optional

import structlog
from dotenv import load_dotenv

from .config import Config, Credentials, load_credentials
from .errors import ConfigError
from .extractor import ExtractionResult, Fallback, extract_snapshot
from .fetcher import HTTPFetcher, build_proxy_url
from .formatter import format_message, format_timestamp
from .telegram import TelegramNotifier

logger = structlog.get_logger(__name__)


def setup_logging(level: str = 'INFO', fmt: str = 'console') -> None:
    """Route stdlib logging and structlog to stdout."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
        force=True,
    )
    # request lines carry the bot token in the URL
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if fmt == 'json' else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_fetcher(config: Config) -> HTTPFetcher:
    fetcher_config = config.fetcher
    return HTTPFetcher(
        user_agent=fetcher_config.get('user_agent'),
        timeout=float(fetcher_config.get('timeout', 30.0)),
        max_redirects=int(fetcher_config.get('max_redirects', 5)),
    )


def create_notifier(config: Config, credentials: Credentials) -> TelegramNotifier:
    return TelegramNotifier(
        bot_token=credentials.bot_token,
        chat_id=credentials.chat_id,
        api_base=config.notifier.get('api_base'),
        timeout=config.notifier.get('timeout'),
    )


async def collect_snapshot(fetcher: HTTPFetcher, config: Config) -> ExtractionResult:
    """Fetch the source page and extract a snapshot; never raises."""
    proxy_url = build_proxy_url(config.source['proxy_prefix'], config.source['url'])
    logger.info("fetch_started", url=proxy_url)

    try:
        result = await fetcher.fetch(proxy_url)
    except Exception as e:
        logger.error("fetch_failed", url=proxy_url, error=str(e))
        return Fallback(reason=f"fetch failed: {e}")

    logger.info("fetch_completed",
                url=proxy_url,
                status_code=result.status_code,
                size=result.size,
                fetch_time=round(result.fetch_time, 3))
    return extract_snapshot(result.content, encoding=result.encoding)


async def run(
    config: Config,
    credentials: Credentials,
    fetcher: Optional[HTTPFetcher] = None,
    notifier: Optional[TelegramNotifier] = None,
    now: Optional[datetime] = None
) -> dict:
    """Run the pipeline once and return the Telegram API response."""
    async with AsyncExitStack() as stack:
        fetcher = await stack.enter_async_context(fetcher or create_fetcher(config))
        notifier = await stack.enter_async_context(notifier or create_notifier(config, credentials))

        extraction = await collect_snapshot(fetcher, config)
        if extraction.is_fallback:
            logger.warning("using_fallback_snapshot", reason=extraction.reason)
        elif extraction.defaulted:
            logger.warning("fields_defaulted", fields=list(extraction.defaulted))

        message = format_message(extraction.snapshot, now or datetime.now(), config.source['url'])
        logger.info("sending_message", chat_id=credentials.chat_id)
        return await notifier.send_message(message)


def main() -> int:
    """Process entrypoint; returns the exit code."""
    load_dotenv()

    try:
        config = Config()
    except ConfigError as e:
        setup_logging()
        logger.error("config_invalid", error=str(e))
        return 1

    setup_logging(config.logging.get('level', 'INFO'), config.logging.get('format', 'console'))
    logger.info("run_started", now=format_timestamp(datetime.now()))

    try:
        credentials = load_credentials()
    except ConfigError as e:
        logger.error("credentials_missing", error=str(e))
        return 1

    try:
        asyncio.run(run(config, credentials))
    except Exception as e:
        logger.error("run_failed", error=str(e), exc_info=True)
        return 1

    logger.info("run_completed")
    return 0
