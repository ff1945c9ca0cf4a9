"""
客户端路由表

把 hash 路由路径解析为 (路由名, 参数)；没有渲染层，只负责名字和参数。
"""
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from jread.core.permissions import Capability


class Route(NamedTuple):
    name: str
    pattern: str
    # 访问该路由需要登录
    login_required: bool = False
    capability: Optional[Capability] = None


ROUTES: List[Route] = [
    Route("home", "/"),
    Route("search", "/search"),
    Route("novel", "/novel/:id"),
    Route("reader", "/read/:novelId/:chapterId"),
    Route("profile", "/user/:userId"),
    Route("contact", "/contact"),
    Route("changelog", "/changelog"),
    Route("settings", "/settings", login_required=True),
    Route("bookmarks", "/bookmarks", login_required=True),
    Route("my_works", "/my-works", login_required=True, capability=Capability.WRITE_NOVELS),
    Route("my_works", "/dashboard", login_required=True, capability=Capability.WRITE_NOVELS),
    Route("edit_novel", "/edit-novel", login_required=True, capability=Capability.WRITE_NOVELS),
    Route("edit_novel", "/edit-novel/:novelId", login_required=True, capability=Capability.WRITE_NOVELS),
    Route("manage_chapters", "/manage-chapters/:novelId", login_required=True,
          capability=Capability.WRITE_NOVELS),
    Route("edit_chapter", "/edit-chapter/:novelId", login_required=True, capability=Capability.WRITE_NOVELS),
    Route("edit_chapter", "/edit-chapter/:novelId/:chapterId", login_required=True,
          capability=Capability.WRITE_NOVELS),
    Route("admin", "/admin-panel", login_required=True, capability=Capability.ACCESS_ADMIN_PANEL),
    Route("admin", "/admin", login_required=True, capability=Capability.ACCESS_ADMIN_PANEL),
]


def _compile(pattern: str) -> "re.Pattern":
    regex = re.sub(r":(\w+)", r"(?P<\1>[^/]+)", pattern)
    return re.compile(f"^{regex}/?$")


_COMPILED: List[Tuple[Route, "re.Pattern"]] = [(route, _compile(route.pattern)) for route in ROUTES]


def resolve(path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
    """
    解析路径（可带 "#" 前缀和查询串）

    Returns:
        (路由, 路径参数)；无匹配时返回 None
    """
    path = path.lstrip("#").split("?", 1)[0] or "/"
    for route, regex in _COMPILED:
        match = regex.match(path)
        if match:
            return route, match.groupdict()
    return None
