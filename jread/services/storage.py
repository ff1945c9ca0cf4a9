"""
对象存储：cover_images 与 profile_pictures 两个桶

文件保存在 MEDIA_ROOT/{bucket}/ 下，文件名为 {毫秒时间戳}-{原文件名}，
通过 MEDIA_URL 下的静态路由公开访问。
"""
import logging
import re
import time
from pathlib import Path

from jread.core.config import settings

logger = logging.getLogger(__name__)

BUCKETS = ("cover_images", "profile_pictures")
ALLOWED_CONTENT_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageService:
    def __init__(self, media_root: str = None):
        self.media_root = Path(media_root or settings.MEDIA_ROOT)

    @staticmethod
    def safe_filename(filename: str) -> str:
        name = Path(filename or "upload").name
        name = _UNSAFE_CHARS.sub("_", name).strip("._")
        return name or "upload"

    def save(self, bucket: str, filename: str, data: bytes, content_type: str = None) -> str:
        """
        保存文件并返回公开URL

        Raises:
            ValueError: 桶不存在、类型不允许或文件过大
        """
        if bucket not in BUCKETS:
            raise ValueError(f"Unknown bucket: {bucket}")
        if content_type and content_type not in ALLOWED_CONTENT_TYPES:
            raise ValueError("Only image uploads are allowed")
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise ValueError("File is too large")

        stored_name = f"{int(time.time() * 1000)}-{self.safe_filename(filename)}"
        target_dir = self.media_root / bucket
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / stored_name).write_bytes(data)

        logger.info(f"✅ 上传文件 {bucket}/{stored_name} ({len(data)} bytes)")
        return f"{settings.MEDIA_URL}/{bucket}/{stored_name}"
