"""Entry point for the live tools market data service.

Wires providers into the three data services, stores them on app.state via
the FastAPI lifespan, and serves the API with uvicorn.

Component wiring order (in build_components):
1. Rate providers -> CurrencyRateService (parallel, median merge)
2. Quote + history providers -> EtfDataService (sequential, synthetic fallback)
3. RSS feed providers -> NewsService (parallel)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI

from livetools.api.app import create_app
from livetools.config import AppSettings
from livetools.logging import get_logger, setup_logging
from livetools.providers.news import NEWS_SOURCES, build_feed_providers
from livetools.providers.quotes import YahooHistoryProvider, build_quote_providers
from livetools.providers.rates import build_rate_providers
from livetools.services.etf_service import EtfDataService
from livetools.services.news_service import NewsService
from livetools.services.rates_service import CurrencyRateService


def build_components(
    settings: AppSettings, transport: httpx.AsyncBaseTransport | None = None
) -> dict[str, Any]:
    """Instantiate every provider and service from settings.

    Args:
        settings: Application settings.
        transport: Optional httpx transport shared by all adapters (tests).

    Returns:
        Dict with "rates_service", "etf_service" and "news_service".
    """
    http = settings.http

    rate_providers = build_rate_providers(
        settings.currency.providers,
        timeout=http.rates_timeout_seconds,
        user_agent=http.user_agent,
        transport=transport,
    )
    quote_providers = build_quote_providers(
        settings.etf.providers,
        timeout=http.timeout_seconds,
        user_agent=http.user_agent,
        enrichment_timeout=http.enrichment_timeout_seconds,
        alpha_vantage_key=settings.etf.alpha_vantage_key.get_secret_value(),
        fmp_key=settings.etf.fmp_key.get_secret_value(),
        transport=transport,
    )
    history_provider = YahooHistoryProvider(
        timeout=http.timeout_seconds, user_agent=http.user_agent, transport=transport
    )
    feeds = build_feed_providers(
        NEWS_SOURCES,
        timeout=http.timeout_seconds,
        user_agent=http.user_agent,
        items_per_source=settings.news.items_per_source,
        transport=transport,
    )

    return {
        "rates_service": CurrencyRateService(
            rate_providers,
            display_codes=settings.currency.display_codes,
            policy=settings.currency.fallback_policy,
        ),
        "etf_service": EtfDataService(
            quote_providers,
            history_provider,
            policy=settings.etf.fallback_policy,
            history_days=settings.etf.history_days,
        ),
        "news_service": NewsService(
            feeds,
            max_articles=settings.news.max_articles,
            policy=settings.news.fallback_policy,
        ),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Store services on app.state for route handler access."""
    logger = get_logger("livetools.main")
    components = app.state.components

    app.state.rates_service = components["rates_service"]
    app.state.etf_service = components["etf_service"]
    app.state.news_service = components["news_service"]

    settings = app.state.settings
    logger.info(
        "lifespan_started",
        currency_providers=settings.currency.providers,
        etf_providers=settings.etf.providers,
        news_sources=len(NEWS_SOURCES),
    )

    yield

    logger.info("live_tools_stopped")


async def run() -> None:
    """Build components and serve the API until interrupted."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("livetools.main")

    components = build_components(settings)

    app = create_app(settings, lifespan=lifespan)
    app.state.components = components

    logger.info(
        "starting_server",
        host=settings.server.host,
        port=settings.server.port,
        currency_policy=settings.currency.fallback_policy,
        etf_policy=settings.etf.fallback_policy,
        news_policy=settings.news.fallback_policy,
    )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
