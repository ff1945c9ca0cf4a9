from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jread.models.comment import Comment
from jread.models.user import User
from jread.schemas.comment import CommentCreate, CommentResponse


class CommentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_response(comment: Comment, user: User) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            user_id=comment.user_id,
            username=user.username,
            user_avatar=user.profile_picture or "",
            chapter_id=comment.chapter_id,
            parent_id=comment.parent_id,
            content=comment.content,
            created_at=comment.created_at,
        )

    async def get_top_level(self, chapter_id: int) -> List[CommentResponse]:
        """只返回顶层评论（不展开回复），按时间正序"""
        result = await self.db.execute(
            select(Comment, User)
            .join(User, User.id == Comment.user_id)
            .where(Comment.chapter_id == chapter_id, Comment.parent_id.is_(None))
            .order_by(Comment.created_at, Comment.id)
        )
        return [self._to_response(comment, user) for comment, user in result.all()]

    async def create(self, user: User, chapter_id: int, comment_data: CommentCreate) -> CommentResponse:
        if comment_data.parent_id is not None:
            parent = await self.db.get(Comment, comment_data.parent_id)
            if not parent or parent.chapter_id != chapter_id:
                raise ValueError("Parent comment not found in this chapter")

        comment = Comment(
            user_id=user.id,
            chapter_id=chapter_id,
            parent_id=comment_data.parent_id,
            content=comment_data.content,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        return self._to_response(comment, user)
