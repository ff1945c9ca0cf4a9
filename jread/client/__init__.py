from jread.client.admin import AdminPanel
from jread.client.api import ApiClient
from jread.client.autosave import AutoSaveEditor, ChapterEditor, NovelEditor, SaveStatus
from jread.client.config import ClientSettings
from jread.client.errors import ApiError, AuthRequiredError, ConfigurationRequiredError, EditorBusyError
from jread.client.interactions import NovelPage
from jread.client.novel_list import NovelListCache, SortKey, filter_and_sort, search_novels
from jread.client.profile import BookmarksPage, ProfilePage
from jread.client.reader import ReaderPage
from jread.client.session import Session
from jread.client.works import ManageChaptersPage, MyWorksPage

__all__ = [
    "AdminPanel",
    "ApiClient",
    "ApiError",
    "AuthRequiredError",
    "AutoSaveEditor",
    "BookmarksPage",
    "ChapterEditor",
    "ClientSettings",
    "ConfigurationRequiredError",
    "EditorBusyError",
    "ManageChaptersPage",
    "MyWorksPage",
    "NovelEditor",
    "NovelListCache",
    "NovelPage",
    "ProfilePage",
    "ReaderPage",
    "SaveStatus",
    "Session",
    "SortKey",
    "filter_and_sort",
    "search_novels",
]
