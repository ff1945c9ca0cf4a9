import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import redis.asyncio as redis

from jread.api import router as api_router
from jread.core.config import settings
from jread.db.database import engine
from jread.db.migration import run_auto_migration
from jread.db.redis import RedisClient
from jread.middleware import ApiKeyMiddleware

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时迁移数据库并确认 Redis 可用，关闭时释放连接"""
    logger.info(f"J Read {settings.VERSION} 启动中")

    if not settings.is_configured:
        # 不中断启动，由中间件对所有请求返回配置提示
        logger.error("❌ 缺少 SECRET_KEY / ANON_KEY 配置，所有接口将返回503")
        yield
        return

    if settings.AUTO_MIGRATE and not await run_auto_migration(engine):
        raise RuntimeError("数据库迁移失败，J Read 无法启动")

    try:
        await RedisClient.check_connection()
    except redis.RedisError as e:
        logger.error(f"❌ 无法连接Redis: {e}")
        raise RuntimeError(f"Redis不可用，J Read 无法启动: {e}")

    logger.info("✅ 数据库和Redis就绪，开始接受请求")
    yield

    await RedisClient.close()
    await engine.dispose()
    logger.info("J Read 已停止")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(ApiKeyMiddleware)

    # CORS配置（最后添加的中间件最先执行，预检请求不需要 apikey）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """未处理的异常统一返回500，不把内部错误细节暴露给客户端"""
        logger.exception(f"❌ 未处理的异常: {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # 根路径路由
    @app.get("/")
    async def root():
        return {
            "message": "Welcome to J Read API",
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        }

    # 注册API路由
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # 封面和头像的公开访问
    app.mount(
        settings.MEDIA_URL,
        StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False),
        name="media",
    )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("jread.main:app", host="0.0.0.0", port=8000, reload=True)
