"""
角色权限表

USER < AUTHOR < ADMIN < OWNER，高级角色拥有低级角色的全部能力。
服务端接口与客户端页面共用这一张表，避免各处手写 role == ... 判断。
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional


class UserRole(str, Enum):
    USER = "USER"
    AUTHOR = "AUTHOR"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class Capability(str, Enum):
    WRITE_NOVELS = "write_novels"
    ACCESS_ADMIN_PANEL = "access_admin_panel"
    MANAGE_CHANGELOG = "manage_changelog"
    DELETE_ANY_NOVEL = "delete_any_novel"
    DELETE_ANY_USER = "delete_any_user"
    VIEW_ANY_DRAFT = "view_any_draft"


_AUTHOR_CAPS = frozenset({Capability.WRITE_NOVELS})
_ADMIN_CAPS = _AUTHOR_CAPS | {
    Capability.ACCESS_ADMIN_PANEL,
    Capability.MANAGE_CHANGELOG,
    Capability.DELETE_ANY_NOVEL,
    Capability.DELETE_ANY_USER,
    Capability.VIEW_ANY_DRAFT,
}

CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.USER: frozenset(),
    UserRole.AUTHOR: _AUTHOR_CAPS,
    UserRole.ADMIN: _ADMIN_CAPS,
    UserRole.OWNER: _ADMIN_CAPS,
}

# 注册时可选的角色
SIGNUP_ROLES = frozenset({UserRole.USER, UserRole.AUTHOR})


def _role(value) -> Optional[UserRole]:
    if value is None:
        return None
    return UserRole(value)


def has_capability(role, capability: Capability) -> bool:
    """role 为 None 表示未登录"""
    role = _role(role)
    if role is None:
        return False
    return capability in CAPABILITIES[role]


def is_author(role) -> bool:
    return has_capability(role, Capability.WRITE_NOVELS)


def is_admin(role) -> bool:
    return has_capability(role, Capability.ACCESS_ADMIN_PANEL)


def can_manage_user(actor_id, actor_role, target_id, target_role) -> bool:
    """
    能否修改目标用户的角色（或删除目标用户）

    - 任何人都不能修改自己的角色
    - OWNER 可以修改除自己以外的任何人
    - ADMIN 只能修改 USER 和 AUTHOR
    - 其他角色无权修改
    """
    if actor_id == target_id:
        return False
    actor_role = _role(actor_role)
    target_role = _role(target_role)
    if actor_role == UserRole.OWNER:
        return True
    if actor_role == UserRole.ADMIN:
        return target_role in (UserRole.USER, UserRole.AUTHOR)
    return False


def can_change_role(actor_id, actor_role, target_id, target_role, new_role=None) -> bool:
    """在 can_manage_user 基础上，ADMIN 不能把别人提升为 ADMIN/OWNER"""
    if not can_manage_user(actor_id, actor_role, target_id, target_role):
        return False
    if new_role is None or _role(actor_role) == UserRole.OWNER:
        return True
    return _role(new_role) in (UserRole.USER, UserRole.AUTHOR)
