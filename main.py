"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import orders, payments, settings as settings_routes, wallet, withdrawals
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from infrastructure.cache import InMemoryCache, init_redis_cache, shutdown_redis_cache
from infrastructure.database import create_tables
from infrastructure.notifications import build_notifier


configure_logging()
logger = get_logger(__name__)

ROUTERS = (orders.router, payments.router, wallet.router, withdrawals.router, settings_routes.router)


async def _settings_cache():
    """平台配置缓存：配置了 Redis 且可连通时多实例共享，否则退回进程内缓存"""
    if settings.redis.url:
        try:
            cache = await init_redis_cache()
        except Exception as exc:
            logger.error("redis_cache_init_failed", error=str(exc))
        else:
            logger.info("redis_cache_initialized", namespace=settings.redis.namespace)
            return cache
    logger.info("memory_cache_initialized", ttl=settings.ledger.settings_cache_ttl)
    return InMemoryCache(default_ttl=settings.ledger.settings_cache_ttl)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 开发环境自动建表；生产执行 alembic upgrade head
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", mode="create_all")
    else:
        logger.info("database_migrations_required", command="alembic upgrade head")

    app.state.settings_cache = await _settings_cache()
    app.state.notifier = build_notifier()
    logger.info("notifier_initialized", backend=settings.notifications.backend)

    yield

    await shutdown_redis_cache()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Marketplace wallet ledger: orders, seller earnings, withdrawals",
)

# 中间件从下往上执行：RequestID 最先，日志依赖其绑定的上下文
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for router in ROUTERS:
    app.include_router(router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return success_response(
        data={"name": settings.PROJECT_NAME, "version": settings.VERSION, "docs": "/docs"},
        message="Welcome",
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(data={"status": "healthy"}, message="OK")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
