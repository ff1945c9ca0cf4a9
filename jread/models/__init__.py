from jread.models.user import User
from jread.models.novel import Novel, NovelStatus
from jread.models.chapter import Chapter
from jread.models.comment import Comment
from jread.models.interaction import Bookmark, Like, Rating, ReadingProgress
from jread.models.changelog import ChangelogEntry, ChangeType
from jread.models.contact import ContactMessage

__all__ = [
    "User", "Novel", "NovelStatus", "Chapter", "Comment",
    "Bookmark", "Like", "Rating", "ReadingProgress",
    "ChangelogEntry", "ChangeType", "ContactMessage",
]
