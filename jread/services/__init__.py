from jread.services.user import UserService
from jread.services.auth import AuthService
from jread.services.novel import NovelService
from jread.services.chapter import ChapterService
from jread.services.interaction import InteractionService
from jread.services.comment import CommentService
from jread.services.changelog import ChangelogService
from jread.services.storage import StorageService
from jread.services.contact import ContactService

__all__ = [
    "UserService", "AuthService", "NovelService", "ChapterService", "InteractionService",
    "CommentService", "ChangelogService", "StorageService", "ContactService",
]
