"""
Encantia admin panel API.

    uvicorn admin_panel.main:app --reload
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.database import close_mongo_connection, connect_to_mongo, db_manager
from .core.logging_config import logging_manager, setup_logging
from .core.middleware import RequestContextMiddleware
from .domains.alerts.repository import AlertsRepository
from .domains.alerts.router import router as alerts_router
from .domains.music.router import router as music_router
from .domains.profiles.repository import ProfilesRepository
from .domains.profiles.router import router as profiles_router
from .shared.exceptions import AdminPanelError, BaseAPIException, ValidationError
from .shared.exceptions import handlers

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (alerts_router, music_router, profiles_router)


async def _prepare_collections() -> None:
    db = await db_manager.get_database()
    await AlertsRepository(db, settings.alerts_collection).ensure_indexes()
    await ProfilesRepository(db, settings.profiles_collection).ensure_indexes()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"관리자 패널 API 시작 (v{settings.api_version})")
    try:
        await connect_to_mongo()
        await _prepare_collections()
    except Exception as e:
        logger.error(f"시작 중 오류, 종료합니다: {e}")
        raise

    yield

    await close_mongo_connection()
    logger.info("관리자 패널 API 종료")
    logging_manager.close()


def register_exception_handlers(app: FastAPI) -> None:
    """Most specific first; Starlette resolves handlers along the exception MRO."""
    app.add_exception_handler(ValidationError, handlers.input_validation_exception_handler)
    app.add_exception_handler(AdminPanelError, handlers.store_exception_handler)
    app.add_exception_handler(BaseAPIException, handlers.base_api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, handlers.http_exception_handler)
    app.add_exception_handler(RequestValidationError, handlers.validation_exception_handler)
    app.add_exception_handler(Exception, handlers.general_exception_handler)


app = FastAPI(
    title="Encantia Admin Panel API",
    description=(
        "알림 관리 및 실시간 알림 피드(WebSocket), 음악 카탈로그, 사용자 프로필 관리 API.\n\n"
        f"실시간 피드: `{API_PREFIX}/alerts/feed`"
    ),
    version=settings.api_version,
    lifespan=lifespan
)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

for router in ROUTERS:
    app.include_router(router, prefix=API_PREFIX)


@app.get("/", tags=["기본"], summary="서비스 정보")
def root():
    return {
        "service": "Encantia Admin Panel",
        "version": settings.api_version,
        "docs": "/docs",
        "api": API_PREFIX,
        "available_domains": ["alerts", "music", "profiles"],
    }


@app.get("/health", tags=["기본"], summary="서비스 및 MongoDB 상태")
async def health_check():
    database_ok = await db_manager.is_healthy()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.api_version,
    }


if __name__ == "__main__":
    uvicorn.run(
        "admin_panel.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
