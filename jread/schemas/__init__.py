from jread.schemas.user import UserResponse, UserPrivateResponse, UserUpdate, RoleUpdateRequest
from jread.schemas.auth import SignupRequest, LoginRequest, TokenResponse, SignupResponse
from jread.schemas.novel import NovelCreate, NovelUpdate, NovelResponse, NovelDetail, GENRES
from jread.schemas.chapter import ChapterCreate, ChapterUpdate, ChapterResponse
from jread.schemas.comment import CommentCreate, CommentResponse
from jread.schemas.changelog import ChangelogChange, ChangelogCreate, ChangelogResponse

__all__ = [
    # 用户
    "UserResponse", "UserPrivateResponse", "UserUpdate", "RoleUpdateRequest",
    # 认证
    "SignupRequest", "LoginRequest", "TokenResponse", "SignupResponse",
    # 小说与章节
    "NovelCreate", "NovelUpdate", "NovelResponse", "NovelDetail", "GENRES",
    "ChapterCreate", "ChapterUpdate", "ChapterResponse",
    # 评论与更新日志
    "CommentCreate", "CommentResponse",
    "ChangelogChange", "ChangelogCreate", "ChangelogResponse",
]
