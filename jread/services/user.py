import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jread.core.permissions import UserRole, can_change_role, can_manage_user
from jread.models.chapter import Chapter
from jread.models.comment import Comment
from jread.models.interaction import Bookmark, Like, Rating, ReadingProgress
from jread.models.novel import Novel
from jread.models.user import User
from jread.schemas.user import UserUpdate
from jread.services.interaction import InteractionService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> List[User]:
        result = await self.db.execute(
            select(User).order_by(User.created_at, User.id)
        )
        return list(result.scalars().all())

    async def update(self, user: User, user_data: UserUpdate) -> User:
        """更新资料与隐私设置，未提供的字段不修改"""
        update_data = user_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(user, field, value)

        # 笔名变化时同步小说上的冗余作者名
        if "pen_name" in update_data or "username" in update_data:
            await self.db.execute(
                update(Novel)
                .where(Novel.author_id == user.id)
                .values(author_name=user.display_name)
            )

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def change_role(self, actor: User, target_id: int, new_role: UserRole) -> User:
        """
        修改用户角色

        Raises:
            LookupError: 目标用户不存在
            PermissionError: 权限表不允许
        """
        target = await self.get_by_id(target_id)
        if not target:
            raise LookupError("User not found")

        if not can_change_role(actor.id, actor.role, target.id, target.role, new_role):
            raise PermissionError("You are not allowed to change this user's role")

        logger.info(f"用户 {actor.id} 将用户 {target.id} 的角色从 {target.role} 改为 {new_role}")
        target.role = new_role
        await self.db.commit()
        await self.db.refresh(target)
        return target

    async def set_last_viewed_novel(self, user: User, novel_id: int) -> None:
        user.last_viewed_novel_id = novel_id
        await self.db.commit()

    async def delete_account(self, user_id: int) -> bool:
        """删除账号及其拥有的小说、章节和全部关联记录"""
        user = await self.get_by_id(user_id)
        if not user:
            return False

        novel_ids = select(Novel.id).where(Novel.author_id == user_id)
        chapter_ids = select(Chapter.id).where(Chapter.novel_id.in_(novel_ids))

        # 该用户点过赞/评过分的其他作者的小说，删除后要修正计数和均值
        liked_ids = (await self.db.execute(
            select(Like.novel_id).where(Like.user_id == user_id, Like.novel_id.not_in(novel_ids))
        )).scalars().all()
        rated_ids = (await self.db.execute(
            select(Rating.novel_id).where(Rating.user_id == user_id, Rating.novel_id.not_in(novel_ids))
        )).scalars().all()

        # 先删别人对这些小说/章节的关联记录，再删自己的
        await self.db.execute(delete(Comment).where(Comment.chapter_id.in_(chapter_ids)))
        await self.db.execute(delete(Comment).where(Comment.user_id == user_id))
        for model in (Bookmark, Like, Rating, ReadingProgress):
            await self.db.execute(delete(model).where(model.novel_id.in_(novel_ids)))
            await self.db.execute(delete(model).where(model.user_id == user_id))

        if liked_ids:
            await self.db.execute(
                update(Novel)
                .where(Novel.id.in_(liked_ids), Novel.likes > 0)
                .values(likes=Novel.likes - 1)
            )
        interactions = InteractionService(self.db)
        for novel_id in rated_ids:
            await interactions.recompute_rating(novel_id)

        await self.db.execute(
            update(User)
            .where(User.last_viewed_novel_id.in_(novel_ids))
            .values(last_viewed_novel_id=None)
        )
        await self.db.execute(delete(Chapter).where(Chapter.novel_id.in_(novel_ids)))
        await self.db.execute(delete(Novel).where(Novel.author_id == user_id))
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()

        logger.info(f"✅ 用户 {user_id} 及其作品已删除")
        return True

    async def admin_delete(self, actor: User, target_id: int) -> bool:
        """管理员删除用户，目标规则与修改角色一致"""
        target = await self.get_by_id(target_id)
        if not target:
            return False
        if not can_manage_user(actor.id, actor.role, target.id, target.role):
            raise PermissionError("You are not allowed to delete this user")
        return await self.delete_account(target_id)
