import asyncio
from types import SimpleNamespace

import pytest
import pytest_asyncio

from jread.client import (
    AdminPanel,
    BookmarksPage,
    ClientSettings,
    ManageChaptersPage,
    MyWorksPage,
    NovelListCache,
    NovelPage,
    ProfilePage,
    ReaderPage,
    Session,
)
from jread.client.autosave import ChapterEditor, SaveStatus
from jread.client.errors import ApiError, AuthRequiredError, ConfigurationRequiredError
from jread.client.reader import MAX_FONT_SIZE, MIN_FONT_SIZE
from jread.client.routes import resolve
from jread.core.permissions import Capability, UserRole

PASSWORD = "password123"


def client_settings(**overrides):
    values = {
        "API_URL": "http://testserver",
        "ANON_KEY": "test-anon-key",
        "AUTOSAVE_DELAY": 0.05,
        "AUTOSAVE_RETRY_DELAY": 0.05,
    }
    values.update(overrides)
    return ClientSettings(**values)


@pytest_asyncio.fixture
async def session(transport):
    async with Session(client_settings(), transport=transport) as session:
        yield session


@pytest.fixture
def published_novel(make_user, make_novel, make_chapter):
    async def _make(chapters=1):
        _, headers = await make_user(role=UserRole.AUTHOR, pen_name="Quill")
        novel = await make_novel(headers, status="PUBLISHED")
        for i in range(chapters):
            await make_chapter(headers, novel["id"], title=f"Chapter {i + 1}")
        return novel

    return _make


def test_session_requires_configuration():
    with pytest.raises(ConfigurationRequiredError):
        Session(ClientSettings(API_URL="", ANON_KEY="key"))
    with pytest.raises(ConfigurationRequiredError):
        Session(ClientSettings(API_URL="http://example.com", ANON_KEY="  "))


async def test_signup_login_logout(session):
    ok, message = await session.signup("quill", "quill@example.com", PASSWORD,
                                       role=UserRole.AUTHOR, pen_name="Quill")
    assert (ok, message) == (True, "Signup successful!")
    assert session.role == UserRole.AUTHOR
    assert session.can(Capability.WRITE_NOVELS)
    assert not session.can(Capability.ACCESS_ADMIN_PANEL)

    ok, message = await session.signup("again", "quill@example.com", PASSWORD)
    assert (ok, message) == (False, "Email already registered")

    await session.logout()
    assert not session.is_authenticated
    assert session.api.access_token is None
    with pytest.raises(AuthRequiredError):
        session.require_user()

    assert await session.login("quill@example.com", "wrong-password") is False
    assert not session.is_authenticated
    assert await session.login("quill@example.com", PASSWORD) is True
    assert session.user.pen_name == "Quill"


async def test_update_profile(session):
    await session.signup("reader", "reader@example.com", PASSWORD)

    assert await session.update_profile(bio="I read a lot", bookmarks_are_public=True)
    assert session.user.bio == "I read a lot"
    assert session.user.bookmarks_are_public is True


async def test_delete_account_clears_session(session):
    await session.signup("gone", "gone@example.com", PASSWORD)

    assert await session.delete_account()
    assert not session.is_authenticated
    assert await session.login("gone@example.com", PASSWORD) is False


async def test_like_rolls_back_on_failure(session, published_novel, monkeypatch):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    cache = NovelListCache(session.api)
    await cache.load()

    page = NovelPage(session, cache=cache)
    assert await page.load(novel["id"])
    page.novel = page.novel.model_copy(update={"likes": 10})
    cache.update(novel["id"], likes=10)

    calls = []

    async def failing_like(novel_id):
        calls.append(novel_id)
        # 远程写期间本地已经是翻转后的状态
        assert page.novel.likes == 11
        assert page.interaction.has_liked is True
        raise ApiError(500, "database unavailable")

    monkeypatch.setattr(session.api, "like_novel", failing_like)

    assert await page.toggle_like() is False
    assert calls == [novel["id"]]
    assert page.novel.likes == 10
    assert page.interaction.has_liked is False
    assert cache.get(novel["id"]).likes == 10


async def test_like_succeeds_and_updates_cache(session, published_novel):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    cache = NovelListCache(session.api)
    await cache.load()

    page = NovelPage(session, cache=cache)
    await page.load(novel["id"])

    assert await page.toggle_like()
    assert page.novel.likes == 1
    assert cache.get(novel["id"]).likes == 1

    await page.load(novel["id"])
    assert page.interaction.has_liked is True

    assert await page.toggle_like()
    assert page.novel.likes == 0


async def test_bookmark_and_rating(session, published_novel, monkeypatch):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    page = NovelPage(session)
    await page.load(novel["id"])

    assert await page.toggle_bookmark()
    assert page.interaction.is_bookmarked is True
    assert [n.id for n in await session.api.get_bookmarked_novels()] == [novel["id"]]

    assert await page.submit_rating(4)
    assert page.interaction.user_rating == 4
    assert page.novel.rating == 4.0

    async def failing_rating(novel_id, rating):
        raise ApiError(None, "offline")

    monkeypatch.setattr(session.api, "submit_rating", failing_rating)
    assert await page.submit_rating(1) is False
    assert page.interaction.user_rating == 4


async def test_bookmark_rolls_back_on_failure(session, published_novel, monkeypatch):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    page = NovelPage(session)
    await page.load(novel["id"])

    calls = []

    async def failing_bookmark(novel_id):
        calls.append(novel_id)
        assert page.interaction.is_bookmarked is True
        raise ApiError(500, "database unavailable")

    monkeypatch.setattr(session.api, "add_bookmark", failing_bookmark)

    assert await page.toggle_bookmark() is False
    assert calls == [novel["id"]]
    assert page.interaction.is_bookmarked is False
    assert await session.api.get_bookmarked_novels() == []


async def test_rating_survives_failed_refresh(session, published_novel, monkeypatch):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    page = NovelPage(session)
    await page.load(novel["id"])

    async def offline_get_novel(novel_id):
        raise ApiError(None, "connection reset")

    monkeypatch.setattr(session.api, "get_novel", offline_get_novel)

    assert await page.submit_rating(5) is True
    assert page.interaction.user_rating == 5
    # 拿不到新均值时保留旧值
    assert page.novel.rating == 0.0

    monkeypatch.undo()
    assert (await session.api.get_novel(novel["id"])).rating == 5.0


async def test_my_works_delete_removes_novel_from_cache(session, monkeypatch):
    await session.signup("quill", "quill@example.com", PASSWORD, role=UserRole.AUTHOR, pen_name="Quill")
    kept = await session.api.create_novel(title="Kept", status="PUBLISHED")
    doomed = await session.api.create_novel(title="Doomed", status="PUBLISHED")
    draft = await session.api.create_novel(title="Draft")
    cache = NovelListCache(session.api)
    await cache.load()
    assert cache.get(doomed.id) is not None

    page = MyWorksPage(session, cache=cache)
    assert await page.load()
    assert {n.id for n in page.novels} == {kept.id, doomed.id, draft.id}

    async def failing_delete(novel_id):
        raise ApiError(500, "boom")

    monkeypatch.setattr(session.api, "delete_novel", failing_delete)
    assert await page.delete_novel(doomed.id) is False
    assert page.error == "Failed to delete the novel."
    assert cache.get(doomed.id) is not None

    monkeypatch.undo()
    assert await page.delete_novel(doomed.id)
    assert {n.id for n in page.novels} == {kept.id, draft.id}
    assert cache.get(doomed.id) is None
    assert cache.get(kept.id) is not None
    assert await session.api.get_novel(doomed.id) is None


async def test_my_works_requires_author(session):
    await session.signup("reader", "reader@example.com", PASSWORD)
    page = MyWorksPage(session)
    assert page.is_allowed is False
    assert await page.load() is False


async def test_manage_chapters_delete_then_refetch(session, published_novel, monkeypatch):
    others = await published_novel()
    await session.signup("quill", "quill@example.com", PASSWORD, role=UserRole.AUTHOR, pen_name="Quill")
    novel = await session.api.create_novel(title="Saga", status="PUBLISHED")
    first = await session.api.create_chapter(novel.id, "One", "text", is_published=True)
    second = await session.api.create_chapter(novel.id, "Two", "more", is_published=True)

    page = ManageChaptersPage(session)
    assert await page.load(novel.id)
    assert [c.id for c in page.novel.chapters] == [first.id, second.id]

    async def failing_delete(chapter_id):
        raise ApiError(500, "boom")

    monkeypatch.setattr(session.api, "delete_chapter", failing_delete)
    assert await page.delete_chapter(first.id) is False
    assert page.error == "Failed to delete chapter."
    assert len(page.novel.chapters) == 2

    monkeypatch.undo()
    assert await page.delete_chapter(first.id)
    assert [c.id for c in page.novel.chapters] == [second.id]

    # 别人的小说不能管理
    assert await page.load(others["id"]) is False
    assert await page.load(9999) is False


async def test_profile_respects_privacy(session, make_user, published_novel):
    novel = await published_novel()
    author_id = novel["author_id"]
    hidden, _ = await make_user(activity_is_public=False)

    page = ProfilePage(session)
    assert await page.load(author_id)
    assert [n.id for n in page.works] == [novel["id"]]
    assert page.last_viewed is None
    assert page.activity_private is False
    # 书架默认不公开
    assert page.bookmarks is None
    assert page.bookmarks_private is True

    assert await page.load(hidden.id)
    assert page.works == []
    assert page.activity_private is True

    assert await page.load(9999) is False
    assert page.error == "User not found."


async def test_own_profile_shows_bookmarks_and_activity(session, published_novel):
    novel = await published_novel()
    await session.signup("fan", "fan@example.com", PASSWORD)
    await session.api.add_bookmark(novel["id"])
    await session.api.set_last_viewed_novel(novel["id"])

    page = ProfilePage(session)
    assert await page.load(session.user.id)
    assert page.is_own_profile
    assert [n.id for n in page.bookmarks] == [novel["id"]]
    assert page.bookmarks_private is False
    assert page.last_viewed.id == novel["id"]


async def test_bookmarks_page(session, published_novel):
    novel = await published_novel()
    page = BookmarksPage(session)
    with pytest.raises(AuthRequiredError):
        await page.load()

    await session.signup("fan", "fan@example.com", PASSWORD)
    await session.api.add_bookmark(novel["id"])
    assert await page.load()
    assert [n.id for n in page.novels] == [novel["id"]]

    assert await page.remove(novel["id"])
    assert page.novels == []
    assert await session.api.get_bookmarked_novels() == []


async def test_interactions_require_login(session, published_novel):
    novel = await published_novel()
    page = NovelPage(session)
    assert await page.load(novel["id"])

    with pytest.raises(AuthRequiredError):
        await page.toggle_like()
    assert await page.load(9999) is False


async def test_admin_change_role_restores_list_on_failure(session, make_user, monkeypatch):
    await make_user(role=UserRole.ADMIN)
    target, _ = await make_user()
    assert await session.login("user1@example.com", PASSWORD)

    panel = AdminPanel(session)
    assert await panel.load()
    assert panel.capabilities.can_delete_users is True
    before = list(panel.users)

    async def failing_update(user_id, role):
        raise ApiError(500, "boom")

    monkeypatch.setattr(session.api, "update_user_role", failing_update)
    assert await panel.change_role(target.id, UserRole.AUTHOR) is False
    assert panel.users == before
    assert panel.error == "Failed to update user role."

    monkeypatch.undo()
    assert await panel.change_role(target.id, UserRole.AUTHOR)
    assert next(u for u in panel.users if u.id == target.id).role == UserRole.AUTHOR


async def test_admin_panel_rights(session, make_user):
    await make_user()
    assert await session.login("user1@example.com", PASSWORD)

    panel = AdminPanel(session)
    assert panel.is_allowed is False
    assert await panel.load() is False


async def test_reader_page(session, published_novel):
    novel = await published_novel(chapters=2)
    await session.signup("fan", "fan@example.com", PASSWORD)

    reader = ReaderPage(session)
    assert await reader.load(novel["id"], 2)
    assert reader.chapter.title == "Chapter 2"
    assert reader.chapter_path(1) == f"/read/{novel['id']}/1"
    assert reader.chapter_path(3) is None
    assert reader.chapter_path(0) is None

    assert await reader.bookmark_chapter()
    assert reader.is_current_chapter_bookmarked

    first = await reader.add_comment("First!")
    second = await reader.add_comment("Second")
    assert [c.id for c in reader.comments] == [first.id, second.id]

    me = await session.api.get_me()
    assert me.last_viewed_novel_id == novel["id"]

    assert await reader.load(novel["id"], 7) is False


def test_font_size_is_clamped():
    reader = ReaderPage(SimpleNamespace(api=None))
    assert reader.font_size == 16
    for _ in range(20):
        reader.change_font_size(2)
    assert reader.font_size == MAX_FONT_SIZE
    for _ in range(20):
        reader.change_font_size(-2)
    assert reader.font_size == MIN_FONT_SIZE


@pytest.mark.parametrize("path, name, params", [
    ("#/", "home", {}),
    ("/novel/12", "novel", {"id": "12"}),
    ("#/read/3/4?from=home", "reader", {"novelId": "3", "chapterId": "4"}),
    ("/dashboard", "my_works", {}),
    ("/edit-chapter/5", "edit_chapter", {"novelId": "5"}),
    ("/edit-chapter/5/9", "edit_chapter", {"novelId": "5", "chapterId": "9"}),
    ("/admin-panel/", "admin", {}),
])
def test_routes_resolve(path, name, params):
    route, found = resolve(path)
    assert route.name == name
    assert found == params


def test_unknown_route():
    assert resolve("/nowhere/at/all") is None
    route, _ = resolve("/settings")
    assert route.login_required is True
    assert route.capability is None


async def test_chapter_editor_against_server(session):
    await session.signup("quill", "quill@example.com", PASSWORD, role=UserRole.AUTHOR, pen_name="Quill")
    novel = await session.api.create_novel(title="Saga", status="PUBLISHED")

    editor = await ChapterEditor.open(session.api, novel.id, session.user.id)
    assert editor.is_new
    editor.set_content("It was a dark")
    await asyncio.sleep(0.3)
    assert editor.status == SaveStatus.SAVED
    editor.set_content("It was a dark and stormy night")
    await asyncio.sleep(0.3)

    await editor.save_now(publish=True)
    editor.close()

    detail = await session.api.get_novel(novel.id)
    assert len(detail.chapters) == 1
    chapter = detail.chapters[0]
    assert chapter.chapter_number == 1
    assert chapter.title == "Untitled Draft"
    assert chapter.content == "It was a dark and stormy night"
    assert chapter.is_published is True

    # 别人的小说打不开编辑器
    assert await ChapterEditor.open(session.api, novel.id, session.user.id + 100) is None
