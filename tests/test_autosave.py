import asyncio
from datetime import datetime

import pytest

from jread.client.autosave import ChapterEditor, NovelEditor, SaveStatus
from jread.client.errors import ApiError, EditorBusyError
from jread.schemas.chapter import ChapterResponse
from jread.schemas.novel import NovelResponse

DELAY = 0.1


class FakeChapterApi:
    """记录每次保存请求；前 fail 次调用抛出 error（默认 ApiError）"""

    def __init__(self, fail=0, latency=0.0, error=None):
        self.calls = []
        self.fail = fail
        self.error = error
        self.latency = latency
        self.in_flight = 0
        self.max_in_flight = 0
        self.next_id = 100

    async def _call(self, kind, **fields):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            self.calls.append((kind, fields))
            if self.fail:
                self.fail -= 1
                raise self.error or ApiError(500, "boom")
        finally:
            self.in_flight -= 1

    async def create_chapter(self, novel_id, title, content, chapter_number=None, is_published=False):
        await self._call("create", title=title, content=content, chapter_number=chapter_number,
                         is_published=is_published)
        self.next_id += 1
        return ChapterResponse(id=self.next_id, novel_id=novel_id, title=title, content=content,
                               chapter_number=chapter_number, is_published=is_published)

    async def update_chapter(self, chapter_id, **fields):
        await self._call("update", chapter_id=chapter_id, **fields)
        return ChapterResponse(id=chapter_id, novel_id=1, title=fields["title"], content=fields["content"],
                               chapter_number=1, is_published=fields.get("is_published", False))


def new_editor(api, **kwargs):
    kwargs.setdefault("existing_numbers", [1, 2])
    return ChapterEditor(api, novel_id=1, delay=DELAY, retry_delay=0.3, **kwargs)


async def type_burst(editor, text, gap=0.02):
    for i in range(1, len(text) + 1):
        editor.set_content(text[:i])
        await asyncio.sleep(gap)


async def test_burst_of_edits_issues_one_save():
    api = FakeChapterApi()
    editor = new_editor(api)

    await type_burst(editor, "hello")
    assert editor.status == SaveStatus.DIRTY
    assert editor.status_text == "Unsaved changes..."
    await asyncio.sleep(DELAY * 3)

    assert len(api.calls) == 1
    kind, fields = api.calls[0]
    assert kind == "create"
    assert fields["content"] == "hello"
    assert editor.status == SaveStatus.SAVED
    assert editor.status_text == "All changes saved."
    editor.close()


async def test_two_bursts_issue_two_saves_create_then_update():
    api = FakeChapterApi()
    editor = new_editor(api)

    await type_burst(editor, "ab")
    await asyncio.sleep(DELAY * 3)
    await type_burst(editor, "abcd")
    await asyncio.sleep(DELAY * 3)

    assert [kind for kind, _ in api.calls] == ["create", "update"]
    assert api.calls[1][1]["chapter_id"] == editor.record_id
    assert api.calls[1][1]["content"] == "abcd"
    editor.close()


async def test_first_save_creates_with_defaults():
    api = FakeChapterApi()
    editor = new_editor(api)

    editor.set_content("text")
    await asyncio.sleep(DELAY * 3)

    _, fields = api.calls[0]
    assert fields["title"] == "Untitled Draft"
    assert fields["chapter_number"] == 3
    assert fields["is_published"] is False
    assert editor.record_id == 101
    assert not editor.is_new
    editor.close()


async def test_existing_chapter_is_updated():
    api = FakeChapterApi()
    chapter = ChapterResponse(id=7, novel_id=1, title="Old", content="old", chapter_number=1)
    editor = new_editor(api, chapter=chapter)
    assert editor.status == SaveStatus.IDLE
    assert editor.status_text == ""

    editor.set_title("New")
    await asyncio.sleep(DELAY * 3)

    assert api.calls == [("update", {"chapter_id": 7, "title": "New", "content": "old"})]
    editor.close()


async def test_failure_keeps_text_and_retries():
    api = FakeChapterApi(fail=1)
    editor = new_editor(api)

    editor.set_content("precious words")
    await asyncio.sleep(DELAY * 2)

    assert editor.status == SaveStatus.ERROR
    assert editor.status_text == "Error saving."
    assert editor.content == "precious words"
    assert len(api.calls) == 1

    # retry_delay 后回到 dirty，再经过一次防抖保存成功
    await asyncio.sleep(0.3 + DELAY * 3)
    assert editor.status == SaveStatus.SAVED
    assert len(api.calls) == 2
    assert editor.record_id is not None
    editor.close()


async def test_edits_while_saving_do_not_start_a_second_write():
    api = FakeChapterApi(latency=0.2)
    editor = new_editor(api)

    editor.set_content("a")
    await asyncio.sleep(DELAY + 0.05)
    assert editor.status == SaveStatus.SAVING
    assert editor.status_text == "Saving..."

    editor.set_content("ab")
    editor.set_content("abc")
    assert editor.status == SaveStatus.SAVING

    await asyncio.sleep(0.2 + DELAY + 0.4)
    assert api.max_in_flight == 1
    assert [kind for kind, _ in api.calls] == ["create", "update"]
    assert api.calls[1][1]["content"] == "abc"
    assert editor.status == SaveStatus.SAVED
    editor.close()


async def test_manual_save_cancels_pending_timer():
    api = FakeChapterApi()
    editor = new_editor(api)

    editor.set_content("draft")
    chapter = await editor.save_now(publish=True)
    await asyncio.sleep(DELAY * 3)

    assert len(api.calls) == 1
    _, fields = api.calls[0]
    assert fields["title"] == "Untitled"
    assert fields["is_published"] is True
    assert chapter.id == editor.record_id
    assert editor.status == SaveStatus.SAVED


async def test_manual_save_rejected_while_saving():
    api = FakeChapterApi(latency=0.2)
    editor = new_editor(api)

    editor.set_content("x")
    await asyncio.sleep(DELAY + 0.05)
    with pytest.raises(EditorBusyError):
        await editor.save_now()

    await asyncio.sleep(0.3)
    assert len(api.calls) == 1
    editor.close()


async def test_manual_save_failure_propagates_without_retry():
    api = FakeChapterApi(fail=1)
    editor = new_editor(api)

    editor.set_content("x")
    with pytest.raises(ApiError):
        await editor.save_now()

    assert editor.status == SaveStatus.ERROR
    await asyncio.sleep(0.3 + DELAY * 3)
    assert len(api.calls) == 1


async def test_close_during_save_drops_follow_up_edits():
    api = FakeChapterApi(latency=0.2)
    editor = new_editor(api)

    editor.set_content("a")
    await asyncio.sleep(DELAY + 0.05)
    assert editor.status == SaveStatus.SAVING

    editor.set_content("ab")
    editor.close()
    await asyncio.sleep(0.2 + DELAY * 4)

    # 进行中的保存照常完成，之后不再补存
    assert [kind for kind, _ in api.calls] == ["create"]
    assert editor.status == SaveStatus.SAVED

    editor.set_content("abc")
    await asyncio.sleep(DELAY * 3)
    assert len(api.calls) == 1


async def test_close_during_failing_save_does_not_retry():
    api = FakeChapterApi(fail=5, latency=0.2)
    editor = new_editor(api)

    editor.set_content("a")
    await asyncio.sleep(DELAY + 0.05)
    editor.close()
    await asyncio.sleep(0.2 + 0.3 + DELAY * 4)

    assert [kind for kind, _ in api.calls] == ["create"]
    assert editor.status == SaveStatus.ERROR


async def test_unexpected_error_is_reported_and_retryable():
    api = FakeChapterApi(fail=1, error=ValueError("response is not JSON"))
    editor = new_editor(api)

    editor.set_content("x")
    await asyncio.sleep(DELAY * 2)
    assert editor.status == SaveStatus.ERROR
    assert isinstance(editor.last_error, ValueError)

    chapter = await editor.save_now()
    assert chapter.id == editor.record_id
    assert editor.status == SaveStatus.SAVED
    assert len(api.calls) == 2
    editor.close()


async def test_unexpected_error_in_manual_save_propagates():
    api = FakeChapterApi(fail=1, error=ValueError("bad payload"))
    editor = new_editor(api)

    editor.set_content("x")
    with pytest.raises(ValueError):
        await editor.save_now()
    assert editor.status == SaveStatus.ERROR
    editor.close()


async def test_close_cancels_pending_save():
    api = FakeChapterApi()
    editor = new_editor(api)

    editor.set_content("bye")
    editor.close()
    await asyncio.sleep(DELAY * 3)

    assert api.calls == []


def test_apply_format_wraps_selection():
    editor = ChapterEditor(FakeChapterApi(), novel_id=1, delay=DELAY, retry_delay=DELAY)
    editor.content = "hello world"
    # 空选区不修改，不需要事件循环
    assert editor.apply_format(3, 3, "bold") is None
    assert editor.content == "hello world"
    assert editor.status == SaveStatus.IDLE


async def test_apply_format_marks_dirty():
    editor = new_editor(FakeChapterApi())
    editor.content = "hello world"

    selection = editor.apply_format(0, 5, "bold")
    assert editor.content == "<strong>hello</strong> world"
    assert selection == (0, len("<strong>hello</strong>"))
    assert editor.status == SaveStatus.DIRTY

    editor.apply_format(selection[1] + 1, selection[1] + 6, "italic")
    assert editor.content == "<strong>hello</strong> <em>world</em>"
    editor.close()


class FakeNovelApi:
    def __init__(self):
        self.calls = []

    async def create_novel(self, **fields):
        self.calls.append(("create", fields))
        return NovelResponse(id=5, author_id=1, author_name="Ann", genre=fields["genre"], title=fields["title"],
                             status=fields["status"], created_at=datetime(2024, 1, 1))

    async def update_novel(self, novel_id, **fields):
        self.calls.append(("update", fields))
        return NovelResponse(id=novel_id, author_id=1, author_name="Ann", genre=fields["genre"],
                             title=fields["title"], status=fields.get("status", "DRAFT"),
                             created_at=datetime(2024, 1, 1))


async def test_novel_editor_creates_then_updates():
    api = FakeNovelApi()
    editor = NovelEditor(api, delay=DELAY, retry_delay=DELAY)

    editor.set_field("synopsis", "A tale")
    await asyncio.sleep(DELAY * 3)
    editor.set_field("title", "Named")
    await asyncio.sleep(DELAY * 3)

    assert [kind for kind, _ in api.calls] == ["create", "update"]
    assert api.calls[0][1]["status"] == "DRAFT"
    assert api.calls[0][1]["title"] == "Untitled"
    assert api.calls[1][1]["title"] == "Named"

    with pytest.raises(ValueError):
        editor.set_field("views", 10)
    editor.close()
