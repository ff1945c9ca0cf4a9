"""
API访问层

把应用层调用翻译成HTTP请求，并把响应解析成 schemas 中的模型。
- 查询类方法遇到404返回None（或空列表），其他错误抛出 ApiError
- 写操作失败一律抛出 ApiError，由调用方决定回滚或提示
"""
import logging
from typing import Any, List, Optional

import httpx

from jread.client.config import ClientSettings
from jread.client.errors import ApiError
from jread.core.permissions import UserRole
from jread.models.novel import NovelStatus
from jread.schemas.auth import TokenResponse
from jread.schemas.changelog import ChangelogCreate, ChangelogResponse
from jread.schemas.chapter import ChapterResponse
from jread.schemas.comment import CommentResponse
from jread.schemas.interaction import (
    InteractionStatus,
    LikeResult,
    RatingResult,
    ReadingProgressResponse,
    ViewResult
)
from jread.schemas.novel import NovelDetail, NovelResponse
from jread.schemas.rpc import AdminCapabilities
from jread.schemas.user import ActivityResponse, UserPrivateResponse, UserResponse

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, settings: ClientSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=settings.base_url,
            headers={"apikey": settings.ANON_KEY},
            timeout=settings.TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_tokens(self, access_token: Optional[str], refresh_token: Optional[str] = None) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ 请求失败 {method} {path}: {e}")
            raise ApiError(None, str(e)) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise ApiError(response.status_code, detail)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _get_or_none(self, path: str, **kwargs) -> Any:
        try:
            return await self._request("GET", path, **kwargs)
        except ApiError as e:
            if e.is_not_found:
                return None
            raise

    # ========== 认证 ==========

    async def signup(self, username: str, email: str, password: str, role: UserRole = UserRole.USER,
                     pen_name: Optional[str] = None, bio: Optional[str] = None) -> TokenResponse:
        data = await self._request("POST", "/auth/signup", json={
            "username": username,
            "email": email,
            "password": password,
            "role": UserRole(role).value,
            "pen_name": pen_name,
            "bio": bio,
        })
        return TokenResponse.model_validate(data)

    async def login(self, email: str, password: str) -> TokenResponse:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return TokenResponse.model_validate(data)

    async def refresh(self) -> str:
        data = await self._request("POST", "/auth/refresh", json={"refresh_token": self.refresh_token})
        self.access_token = data["access_token"]
        return self.access_token

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def get_me(self) -> Optional[UserPrivateResponse]:
        data = await self._get_or_none("/auth/me")
        return UserPrivateResponse.model_validate(data) if data else None

    async def update_me(self, **fields) -> UserPrivateResponse:
        data = await self._request("PATCH", "/auth/me", json=fields)
        return UserPrivateResponse.model_validate(data)

    async def delete_self(self) -> None:
        await self.rpc("delete_user_account")

    # ========== 用户 ==========

    async def get_users(self) -> List[UserResponse]:
        data = await self._request("GET", "/users")
        return [UserResponse.model_validate(item) for item in data]

    async def get_user(self, user_id: int) -> Optional[UserResponse]:
        data = await self._get_or_none(f"/users/{user_id}")
        return UserResponse.model_validate(data) if data else None

    async def update_user_role(self, user_id: int, role: UserRole) -> UserResponse:
        data = await self._request("PATCH", f"/users/{user_id}/role", json={"role": UserRole(role).value})
        return UserResponse.model_validate(data)

    async def get_user_bookmarks(self, user_id: int) -> List[NovelResponse]:
        data = await self._request("GET", f"/users/{user_id}/bookmarks")
        return [NovelResponse.model_validate(item) for item in data]

    async def get_user_activity(self, user_id: int) -> Optional[ActivityResponse]:
        """用户不存在返回 None；活动不公开时抛出 403 的 ApiError"""
        data = await self._get_or_none(f"/users/{user_id}/activity")
        return ActivityResponse.model_validate(data) if data is not None else None

    # ========== 小说 ==========

    async def get_novels(self) -> List[NovelResponse]:
        data = await self._request("GET", "/novels")
        return [NovelResponse.model_validate(item) for item in data]

    async def get_novel(self, novel_id: int) -> Optional[NovelDetail]:
        data = await self._get_or_none(f"/novels/{novel_id}")
        return NovelDetail.model_validate(data) if data else None

    async def get_novels_by_author(self, author_id: int) -> List[NovelResponse]:
        data = await self._get_or_none(f"/users/{author_id}/novels")
        return [NovelResponse.model_validate(item) for item in data or []]

    async def create_novel(self, **fields) -> NovelResponse:
        data = await self._request("POST", "/novels", json=fields)
        return NovelResponse.model_validate(data)

    async def update_novel(self, novel_id: int, **fields) -> NovelResponse:
        data = await self._request("PATCH", f"/novels/{novel_id}", json=fields)
        return NovelResponse.model_validate(data)

    async def update_novel_status(self, novel_id: int, status: NovelStatus) -> NovelResponse:
        data = await self._request("PATCH", f"/novels/{novel_id}/status",
                                   json={"status": NovelStatus(status).value})
        return NovelResponse.model_validate(data)

    async def delete_novel(self, novel_id: int) -> None:
        await self._request("DELETE", f"/novels/{novel_id}")

    # ========== 章节 ==========

    async def get_chapter(self, chapter_id: int) -> Optional[ChapterResponse]:
        data = await self._get_or_none(f"/chapters/{chapter_id}")
        return ChapterResponse.model_validate(data) if data else None

    async def create_chapter(self, novel_id: int, title: str, content: str,
                             chapter_number: Optional[int] = None, is_published: bool = False) -> ChapterResponse:
        payload = {"title": title, "content": content, "is_published": is_published}
        if chapter_number is not None:
            payload["chapter_number"] = chapter_number
        data = await self._request("POST", f"/novels/{novel_id}/chapters", json=payload)
        return ChapterResponse.model_validate(data)

    async def update_chapter(self, chapter_id: int, **fields) -> ChapterResponse:
        data = await self._request("PATCH", f"/chapters/{chapter_id}", json=fields)
        return ChapterResponse.model_validate(data)

    async def delete_chapter(self, chapter_id: int) -> None:
        await self._request("DELETE", f"/chapters/{chapter_id}")

    # ========== 评论 ==========

    async def get_comments(self, chapter_id: int) -> List[CommentResponse]:
        data = await self._get_or_none(f"/chapters/{chapter_id}/comments")
        return [CommentResponse.model_validate(item) for item in data or []]

    async def add_comment(self, chapter_id: int, content: str, parent_id: Optional[int] = None) -> CommentResponse:
        data = await self._request("POST", f"/chapters/{chapter_id}/comments",
                                   json={"content": content, "parent_id": parent_id})
        return CommentResponse.model_validate(data)

    # ========== 书签 / 点赞 / 评分 / 进度 ==========

    async def get_interaction_status(self, novel_id: int) -> InteractionStatus:
        data = await self._request("GET", f"/novels/{novel_id}/interaction")
        return InteractionStatus.model_validate(data)

    async def add_bookmark(self, novel_id: int) -> None:
        await self._request("POST", f"/novels/{novel_id}/bookmark")

    async def remove_bookmark(self, novel_id: int) -> None:
        await self._request("DELETE", f"/novels/{novel_id}/bookmark")

    async def get_bookmarked_novels(self) -> List[NovelResponse]:
        data = await self._request("GET", "/bookmarks")
        return [NovelResponse.model_validate(item) for item in data]

    async def like_novel(self, novel_id: int) -> LikeResult:
        return LikeResult.model_validate(await self._request("POST", f"/novels/{novel_id}/like"))

    async def unlike_novel(self, novel_id: int) -> LikeResult:
        return LikeResult.model_validate(await self._request("DELETE", f"/novels/{novel_id}/like"))

    async def toggle_like(self, novel_id: int) -> LikeResult:
        return LikeResult.model_validate(await self.rpc("toggle_like", novel_id=novel_id))

    async def submit_rating(self, novel_id: int, rating: int) -> RatingResult:
        return RatingResult.model_validate(await self.rpc("submit_rating", novel_id=novel_id, rating=rating))

    async def increment_novel_view(self, novel_id: int, chapter_id: Optional[int] = None) -> ViewResult:
        data = await self.rpc("increment_novel_view", novel_id=novel_id, chapter_id=chapter_id)
        return ViewResult.model_validate(data)

    async def get_reading_progress(self, novel_id: int) -> Optional[ReadingProgressResponse]:
        data = await self._get_or_none(f"/novels/{novel_id}/progress")
        return ReadingProgressResponse.model_validate(data) if data else None

    async def save_reading_progress(self, novel_id: int, chapter_id: int,
                                    scroll_position_percent: float = 0.0) -> ReadingProgressResponse:
        data = await self._request("PUT", f"/novels/{novel_id}/progress", json={
            "chapter_id": chapter_id,
            "scroll_position_percent": scroll_position_percent,
        })
        return ReadingProgressResponse.model_validate(data)

    async def set_last_viewed_novel(self, novel_id: int) -> None:
        await self._request("POST", "/profile/last-viewed", json={"novel_id": novel_id})

    # ========== 管理 ==========

    async def admin_delete_novel(self, novel_id: int) -> None:
        await self.rpc("admin_delete_novel", novel_id_to_delete=novel_id)

    async def admin_delete_user(self, user_id: int) -> None:
        await self.rpc("admin_delete_user", user_id_to_delete=user_id)

    async def check_admin_capabilities(self) -> AdminCapabilities:
        try:
            return AdminCapabilities.model_validate(await self.rpc("check_admin_capabilities"))
        except ApiError as e:
            logger.error(f"检查管理能力失败: {e}")
            return AdminCapabilities()

    # ========== 更新日志 / 联系 / 上传 ==========

    async def get_changelogs(self) -> List[ChangelogResponse]:
        data = await self._request("GET", "/changelogs")
        return [ChangelogResponse.model_validate(item) for item in data]

    async def add_changelog(self, entry: ChangelogCreate) -> ChangelogResponse:
        data = await self._request("POST", "/changelogs", json=entry.model_dump(mode="json"))
        return ChangelogResponse.model_validate(data)

    async def update_changelog(self, entry_id: int, entry: ChangelogCreate) -> ChangelogResponse:
        data = await self._request("PUT", f"/changelogs/{entry_id}", json=entry.model_dump(mode="json"))
        return ChangelogResponse.model_validate(data)

    async def delete_changelog(self, entry_id: int) -> None:
        await self._request("DELETE", f"/changelogs/{entry_id}")

    async def send_contact_message(self, email: str, subject: str, message: str) -> None:
        await self._request("POST", "/contact", json={"email": email, "subject": subject, "message": message})

    async def upload_file(self, bucket: str, filename: str, data: bytes, content_type: str) -> str:
        result = await self._request("POST", f"/storage/{bucket}", files={"file": (filename, data, content_type)})
        return result["public_url"]

    async def upload_profile_picture(self, filename: str, data: bytes, content_type: str) -> str:
        return await self.upload_file("profile_pictures", filename, data, content_type)

    async def upload_cover_image(self, filename: str, data: bytes, content_type: str) -> str:
        return await self.upload_file("cover_images", filename, data, content_type)

    # ========== RPC ==========

    async def rpc(self, name: str, **params) -> Any:
        return await self._request("POST", f"/rpc/{name}", json=params or None)
