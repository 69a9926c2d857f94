"""
FastAPI application entry point for the Ticker Intelligence backend.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .api.admin import router as admin_router
from .api.assets import router as assets_router
from .api.dependencies.rate_limit import limiter
from .api.health import router as health_router
from .api.news import router as news_router
from .api.symbols import router as symbols_router
from .core.config import Settings, get_settings
from .core.exceptions import AppError
from .database import mongodb as collections
from .database.mongodb import MongoDB
from .database.redis import RedisKeyValueStore
from .database.repositories import (
    CoinCorpusRepository,
    ExchangePairRepository,
    PendingMappingRepository,
    ReferenceTickerRepository,
    SymbolMappingRepository,
)
from .services.asset_details import AssetDetailService
from .services.news_cache import NewsCacheService
from .services.providers import (
    CoinGeckoClient,
    CryptoNewsClient,
    PolygonClient,
    PolygonNewsClient,
)
from .services.swr import SWRCoordinator
from .services.symbol_intelligence import SymbolIntelligenceService
from .services.symbols import MultiSourceResolver, PendingQueueManager, ResolverConfig

logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


def build_news_feeds(
    settings: Settings, crypto_news: CryptoNewsClient, polygon_news: PolygonNewsClient
) -> dict:
    """Topic -> fetchers in priority order (earlier feeds win on duplicate URLs)."""
    limit = settings.news_max_items
    return {
        "crypto": [
            lambda: crypto_news.get_latest(limit),
            lambda: polygon_news.get_latest(limit, ticker="X:BTCUSD"),
        ],
        "stocks": [lambda: polygon_news.get_latest(limit)],
        "markets": [
            lambda: polygon_news.get_latest(limit),
            lambda: crypto_news.get_latest(limit),
        ],
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open connections, ensure indexes and wire services into app state."""
    settings = get_settings()

    logger.info("Starting Ticker Intelligence backend", environment=settings.environment)

    mongodb = MongoDB()
    redis_store = RedisKeyValueStore(
        stale_retention_seconds=settings.cache_stale_retention_seconds
    )
    polygon = PolygonClient(settings.polygon_api_key, base_url=settings.polygon_base_url)
    polygon_news = PolygonNewsClient(
        settings.polygon_api_key, base_url=settings.polygon_base_url
    )
    coingecko = CoinGeckoClient(
        settings.coingecko_api_key, base_url=settings.coingecko_base_url
    )
    crypto_news = CryptoNewsClient(settings.news_api_key, base_url=settings.news_api_url)

    try:
        await mongodb.connect(settings.mongodb_url)
        await redis_store.connect(settings.redis_url)

        mapping_repo = SymbolMappingRepository(
            mongodb.get_collection(collections.SYMBOL_MAPPINGS)
        )
        pending_repo = PendingMappingRepository(
            mongodb.get_collection(collections.PENDING_MAPPINGS)
        )
        reference_repo = ReferenceTickerRepository(
            mongodb.get_collection(collections.REFERENCE_TICKERS)
        )
        corpus_repo = CoinCorpusRepository(mongodb.get_collection(collections.COIN_CORPUS))
        pair_repo = ExchangePairRepository(mongodb.get_collection(collections.EXCHANGE_PAIRS))

        for repo in (mapping_repo, pending_repo, reference_repo, corpus_repo, pair_repo):
            await repo.ensure_indexes()
        logger.info("Mapping and reference indexes created")

        coordinator = SWRCoordinator(
            redis_store,
            lock_ttl_seconds=settings.swr_lock_ttl_seconds,
            refresh_timeout_seconds=settings.refresh_timeout_seconds,
        )
        pending_queue = PendingQueueManager(pending_repo, mapping_repo)
        resolver = MultiSourceResolver(
            mapping_repo,
            reference_repo,
            corpus_repo,
            pending_queue,
            config=ResolverConfig.from_settings(settings),
            pair_repo=pair_repo,
        )

        app.state.mongodb = mongodb
        app.state.redis = redis_store
        app.state.coordinator = coordinator
        app.state.pending_queue = pending_queue
        app.state.symbol_service = SymbolIntelligenceService(
            resolver, coordinator, ttl_seconds=settings.cache_ttl_symbol_resolution
        )
        app.state.asset_service = AssetDetailService(
            coordinator,
            mapping_repo,
            reference_repo,
            corpus_repo,
            polygon,
            coingecko,
            ttl_seconds=settings.cache_ttl_asset_details,
        )
        app.state.news_service = NewsCacheService(
            coordinator,
            build_news_feeds(settings, crypto_news, polygon_news),
            ttl_seconds=settings.cache_ttl_news,
            max_items=settings.news_max_items,
        )

        logger.info("Services started")

        yield

    finally:
        for client in (polygon, polygon_news, coingecko, crypto_news):
            await client.close()
        await mongodb.disconnect()
        await redis_store.disconnect()
        logger.info("Connections closed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ticker Intelligence API",
        description="Symbol resolution and cached market data enrichment",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"detail": f"Rate limit exceeded: {exc.detail}", "error_type": "rate_limit_error"},
            headers={"Retry-After": "60"},
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render AppError subclasses with their HTTP status code."""
        error_dict = exc.to_dict()

        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Application error occurred",
            path=request.url.path,
            method=request.method,
            **error_dict,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_type": exc.error_type},
        )

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(symbols_router)
    app.include_router(assets_router)
    app.include_router(news_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint for basic connectivity check."""
        return {
            "message": "Ticker Intelligence API",
            "version": "0.1.0",
            "environment": settings.environment,
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tickerintel.main:app",
        host="0.0.0.0",  # nosec B104 - Required for Docker container
        port=8000,
        reload=settings.is_development,
    )
