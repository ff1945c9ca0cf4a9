"""
编辑器自动保存

状态流转: idle → dirty → saving → saved / error
- 每次编辑进入 dirty 并重新开始防抖计时，静默 AUTOSAVE_DELAY 秒后发起一次保存
- 保存进行中的编辑只做标记，等本次保存结束后再重新进入 dirty，因此同一时刻最多一个保存请求
- 保存失败进入 error，AUTOSAVE_RETRY_DELAY 秒后回到 dirty 重新走防抖
- 手动保存（保存并退出 / 发布）在 saving 以外的任何状态可用，会取消挂起的计时器
- 第一次保存创建记录并记下ID，之后的保存都是更新
- 保存失败不回滚编辑中的内容
- close() 之后不再安排新的保存或重试
"""
import asyncio
import logging
from enum import Enum
from typing import Any, List, Optional, Tuple

from jread.client.errors import ApiError, EditorBusyError
from jread.models.novel import NovelStatus
from jread.schemas.chapter import ChapterResponse
from jread.schemas.novel import NovelResponse

logger = logging.getLogger(__name__)

# 选区格式化使用的内联标签
FORMAT_TAGS = {
    "bold": "strong",
    "italic": "em",
    "underline": "u",
}


class SaveStatus(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


STATUS_TEXT = {
    SaveStatus.IDLE: "",
    SaveStatus.DIRTY: "Unsaved changes...",
    SaveStatus.SAVING: "Saving...",
    SaveStatus.SAVED: "All changes saved.",
    SaveStatus.ERROR: "Error saving.",
}


class AutoSaveEditor:
    """
    自动保存状态机，子类提供 _create / _update 两个持久化动作
    """

    def __init__(self, api, record_id: Optional[int] = None,
                 delay: Optional[float] = None, retry_delay: Optional[float] = None):
        self.api = api
        self.record_id = record_id
        self.delay = delay if delay is not None else api.settings.AUTOSAVE_DELAY
        self.retry_delay = retry_delay if retry_delay is not None else api.settings.AUTOSAVE_RETRY_DELAY

        self.status = SaveStatus.IDLE
        self.last_error: Optional[Exception] = None
        self._edited_while_saving = False
        self._closed = False
        self._timer: Optional[asyncio.Task] = None
        self._retry: Optional[asyncio.Task] = None

    @property
    def is_new(self) -> bool:
        return self.record_id is None

    @property
    def status_text(self) -> str:
        return STATUS_TEXT[self.status]

    # ========== 持久化动作 ==========

    async def _create(self, manual: bool, publish: Optional[bool]) -> Any:
        raise NotImplementedError

    async def _update(self, manual: bool, publish: Optional[bool]) -> Any:
        raise NotImplementedError

    async def _persist(self, manual: bool, publish: Optional[bool] = None) -> Any:
        if self.record_id is None:
            record = await self._create(manual, publish)
            self.record_id = record.id
            logger.info(f"✅ 首次保存已创建记录 {record.id}")
            return record
        return await self._update(manual, publish)

    # ========== 状态流转 ==========

    def mark_dirty(self) -> None:
        """记录一次编辑；close() 之后不再安排保存"""
        if self._closed:
            return
        if self.status == SaveStatus.SAVING:
            self._edited_while_saving = True
            return
        self._cancel(self._retry)
        self._retry = None
        self.status = SaveStatus.DIRTY
        self._arm_timer()

    def _arm_timer(self) -> None:
        self._cancel(self._timer)
        self._timer = asyncio.get_running_loop().create_task(self._debounce())

    async def _debounce(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        if self.status == SaveStatus.DIRTY:
            await self._auto_save()

    async def _auto_save(self) -> None:
        self.status = SaveStatus.SAVING
        try:
            await self._persist(manual=False)
        except ApiError as e:
            logger.error(f"❌ 自动保存失败: {e}")
            self._fail(e)
        except Exception as e:
            logger.exception(f"❌ 自动保存出现意外错误: {e}")
            self._fail(e)
        else:
            self.status = SaveStatus.SAVED
        self._resume_pending_edits()

    async def _retry_later(self) -> None:
        await asyncio.sleep(self.retry_delay)
        self._retry = None
        if self.status == SaveStatus.ERROR:
            self.mark_dirty()

    def _fail(self, error: Exception) -> None:
        self.status = SaveStatus.ERROR
        self.last_error = error
        if not self._closed:
            self._retry = asyncio.get_running_loop().create_task(self._retry_later())

    def _resume_pending_edits(self) -> None:
        if self._edited_while_saving and not self._closed:
            self._edited_while_saving = False
            self.mark_dirty()

    async def save_now(self, publish: Optional[bool] = None) -> Any:
        """
        手动保存，跳过防抖立即写入

        Args:
            publish: None 表示不修改发布状态

        Returns:
            保存后的记录

        Raises:
            EditorBusyError: 已有保存在进行中
            ApiError: 保存失败（状态变为 error，不自动重试；其他异常同样原样抛出）
        """
        if self.status == SaveStatus.SAVING:
            raise EditorBusyError("A save is already in progress")

        self._cancel_timers()
        self.status = SaveStatus.SAVING
        try:
            record = await self._persist(manual=True, publish=publish)
        except Exception as e:
            logger.error(f"❌ 手动保存失败: {e}")
            self.status = SaveStatus.ERROR
            self.last_error = e
            self._edited_while_saving = False
            raise

        self.status = SaveStatus.SAVED
        self._resume_pending_edits()
        return record

    def close(self) -> None:
        """
        离开编辑页时调用，取消挂起的计时器

        进行中的保存会完成，但之后不再补存、不再重试
        """
        self._closed = True
        self._edited_while_saving = False
        self._cancel_timers()

    def _cancel_timers(self) -> None:
        self._cancel(self._timer)
        self._cancel(self._retry)
        self._timer = None
        self._retry = None

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()


class ChapterEditor(AutoSaveEditor):
    """章节正文编辑器，新章节的第一次保存会创建章节"""

    auto_save_title = "Untitled Draft"
    manual_save_title = "Untitled"

    def __init__(self, api, novel_id: int, chapter: Optional[ChapterResponse] = None,
                 existing_numbers: Optional[List[int]] = None, **kwargs):
        super().__init__(api, record_id=chapter.id if chapter else None, **kwargs)
        self.novel_id = novel_id
        self.title = chapter.title if chapter else ""
        self.content = chapter.content if chapter else ""
        self.existing_numbers = list(existing_numbers or [])

    @classmethod
    async def open(cls, api, novel_id: int, author_id: int,
                   chapter_id: Optional[int] = None, **kwargs) -> Optional["ChapterEditor"]:
        """
        加载编辑器；小说不存在、不属于当前作者或章节不存在时返回 None
        """
        novel = await api.get_novel(novel_id)
        if novel is None or novel.author_id != author_id:
            return None

        chapter = None
        if chapter_id is not None:
            chapter = next((c for c in novel.chapters if c.id == chapter_id), None)
            if chapter is None:
                return None

        numbers = [c.chapter_number for c in novel.chapters]
        return cls(api, novel_id, chapter=chapter, existing_numbers=numbers, **kwargs)

    @property
    def next_chapter_number(self) -> int:
        return max(self.existing_numbers, default=0) + 1

    def set_title(self, title: str) -> None:
        self.title = title
        self.mark_dirty()

    def set_content(self, content: str) -> None:
        self.content = content
        self.mark_dirty()

    def apply_format(self, start: int, end: int, fmt: str) -> Optional[Tuple[int, int]]:
        """
        用内联标签包住选区 [start, end)

        Returns:
            包裹后的新选区；选区为空时返回 None 且不做修改
        """
        tag = FORMAT_TAGS[fmt]
        selected = self.content[start:end]
        if not selected:
            return None
        replacement = f"<{tag}>{selected}</{tag}>"
        self.set_content(self.content[:start] + replacement + self.content[end:])
        return start, start + len(replacement)

    async def _create(self, manual: bool, publish: Optional[bool]) -> ChapterResponse:
        default_title = self.manual_save_title if manual else self.auto_save_title
        number = self.next_chapter_number
        chapter = await self.api.create_chapter(
            self.novel_id,
            title=self.title or default_title,
            content=self.content,
            chapter_number=number,
            is_published=bool(publish),
        )
        self.existing_numbers.append(chapter.chapter_number)
        # 之后的更新沿用创建时补上的默认标题
        self.title = self.title or chapter.title
        return chapter

    async def _update(self, manual: bool, publish: Optional[bool]) -> ChapterResponse:
        fields = {"title": self.title, "content": self.content}
        if publish is not None:
            fields["is_published"] = publish
        return await self.api.update_chapter(self.record_id, **fields)


class NovelEditor(AutoSaveEditor):
    """小说信息编辑器，保存成功后同步到小说列表缓存"""

    auto_save_title = "Untitled"
    manual_save_title = "Untitled"

    FIELDS = ("title", "synopsis", "genre", "tags", "language", "cover_image")

    def __init__(self, api, novel: Optional[NovelResponse] = None, cache=None, **kwargs):
        super().__init__(api, record_id=novel.id if novel else None, **kwargs)
        self.cache = cache
        self.title = novel.title if novel else ""
        self.synopsis = novel.synopsis if novel else ""
        self.genre = novel.genre if novel else "Fantasy"
        self.tags: List[str] = list(novel.tags) if novel else []
        self.language = novel.language if novel else "English"
        self.cover_image: Optional[str] = novel.cover_image if novel else None

    def set_field(self, name: str, value: Any) -> None:
        if name not in self.FIELDS:
            raise ValueError(f"Unknown novel field: {name}")
        setattr(self, name, value)
        self.mark_dirty()

    def _payload(self, manual: bool) -> dict:
        data = {name: getattr(self, name) for name in self.FIELDS}
        data["title"] = self.title or (self.manual_save_title if manual else self.auto_save_title)
        if not data["cover_image"]:
            data.pop("cover_image")
        return data

    async def _create(self, manual: bool, publish: Optional[bool]) -> NovelResponse:
        status = NovelStatus.PUBLISHED if publish else NovelStatus.DRAFT
        novel = await self.api.create_novel(status=status.value, **self._payload(manual))
        if self.cache is not None:
            self.cache.sync(novel)
        return novel

    async def _update(self, manual: bool, publish: Optional[bool]) -> NovelResponse:
        data = self._payload(manual)
        if publish is not None:
            data["status"] = (NovelStatus.PUBLISHED if publish else NovelStatus.DRAFT).value
        novel = await self.api.update_novel(self.record_id, **data)
        if self.cache is not None:
            self.cache.sync(novel)
        return novel
