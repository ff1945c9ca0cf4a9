"""
请求入口检查

- 配置缺失：所有请求返回503和固定的配置提示
- 匿名密钥：API请求必须在 apikey 头中携带 ANON_KEY
"""
import logging
import secrets

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from jread.core.config import settings

logger = logging.getLogger(__name__)

CONFIGURATION_REQUIRED = {
    "detail": "Configuration required",
    "remediation": (
        "Set SECRET_KEY and ANON_KEY in the environment or .env file, "
        "then restart the server."
    ),
}

# 不需要 apikey 的路径前缀
PUBLIC_PREFIXES = ("/docs", "/redoc", settings.MEDIA_URL)


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """配置检查 + 匿名密钥检查"""

    async def dispatch(self, request: Request, call_next):
        if not settings.is_configured:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=CONFIGURATION_REQUIRED,
            )

        path = request.url.path
        if request.method == "OPTIONS" or path == "/" or path.endswith("/openapi.json") \
                or path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        api_key = request.headers.get("apikey", "")
        if not secrets.compare_digest(api_key, settings.ANON_KEY):
            logger.warning(f"拒绝缺少有效 apikey 的请求: {request.method} {path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )

        return await call_next(request)
