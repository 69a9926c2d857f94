"""
Dependency providers reading the instances built during application lifespan.
"""

from fastapi import Request

from ...database.mongodb import MongoDB
from ...database.redis import RedisKeyValueStore
from ...services.asset_details import AssetDetailService
from ...services.news_cache import NewsCacheService
from ...services.swr import SWRCoordinator
from ...services.symbol_intelligence import SymbolIntelligenceService
from ...services.symbols.pending_queue import PendingQueueManager


def get_mongodb(request: Request) -> MongoDB:
    """Dependency to get MongoDB instance from app state."""
    mongodb: MongoDB = request.app.state.mongodb
    return mongodb


def get_redis(request: Request) -> RedisKeyValueStore:
    """Dependency to get the Redis store from app state."""
    store: RedisKeyValueStore = request.app.state.redis
    return store


def get_coordinator(request: Request) -> SWRCoordinator:
    coordinator: SWRCoordinator = request.app.state.coordinator
    return coordinator


def get_symbol_service(request: Request) -> SymbolIntelligenceService:
    service: SymbolIntelligenceService = request.app.state.symbol_service
    return service


def get_asset_service(request: Request) -> AssetDetailService:
    service: AssetDetailService = request.app.state.asset_service
    return service


def get_news_service(request: Request) -> NewsCacheService:
    service: NewsCacheService = request.app.state.news_service
    return service


def get_pending_queue(request: Request) -> PendingQueueManager:
    queue: PendingQueueManager = request.app.state.pending_queue
    return queue
