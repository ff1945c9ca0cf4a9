"""
启动时的数据库迁移

应用启动时比较数据库当前版本和迁移脚本的 head，不一致就执行 alembic upgrade head。
"""
import asyncio
import logging
from pathlib import Path
from typing import Set

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from jread.core.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config() -> Config:
    ini_path = PROJECT_ROOT / "alembic.ini"
    if not ini_path.exists():
        raise FileNotFoundError(f"找不到 alembic.ini: {ini_path}")

    config = Config(str(ini_path))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    # 应用内迁移沿用应用自己的日志配置
    config.attributes["configure_logger"] = False
    return config


class DatabaseMigrationManager:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.alembic_cfg = build_alembic_config()

    async def current_heads(self) -> Set[str]:
        """数据库里记录的版本；没有 alembic_version 表时为空集合"""
        async with self.engine.connect() as conn:
            heads = await conn.run_sync(
                lambda sync_conn: MigrationContext.configure(sync_conn).get_current_heads()
            )
        return set(heads)

    def script_heads(self) -> Set[str]:
        return set(ScriptDirectory.from_config(self.alembic_cfg).get_heads())

    def _upgrade(self) -> None:
        command.upgrade(self.alembic_cfg, "head")

    async def auto_migrate(self) -> bool:
        """
        Returns:
            bool: 数据库是否已处于最新版本
        """
        try:
            current = await self.current_heads()
        except SQLAlchemyError as e:
            logger.error(f"❌ 读取数据库版本失败: {e}")
            return False

        target = self.script_heads()
        if current == target:
            logger.info(f"数据库已是最新版本: {', '.join(sorted(target))}")
            return True

        logger.info(f"数据库版本 {sorted(current) or '未初始化'} → {sorted(target)}，开始迁移")
        try:
            # env.py 内部会 asyncio.run，放到线程里执行
            await asyncio.get_running_loop().run_in_executor(None, self._upgrade)
        except Exception as e:
            logger.error(f"❌ 数据库迁移失败: {e}")
            return False
        logger.info("✅ 数据库迁移完成")
        return True


async def run_auto_migration(engine: AsyncEngine) -> bool:
    return await DatabaseMigrationManager(engine).auto_migrate()
