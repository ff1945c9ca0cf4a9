from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text, false, true
from sqlalchemy.sql import func

from jread.core.permissions import UserRole
from jread.db.base import Base


class User(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.USER,
        server_default=UserRole.USER.value
    )
    profile_picture = Column(String(500), nullable=False, default="")
    pen_name = Column(String(100))
    bio = Column(Text)

    # 隐私设置
    bookmarks_are_public = Column(Boolean, nullable=False, default=False, server_default=false())
    activity_is_public = Column(Boolean, nullable=False, default=True, server_default=true())

    last_viewed_novel_id = Column(Integer, ForeignKey("novels.id", ondelete="SET NULL", use_alter=True, name="fk_profiles_last_viewed_novel"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.pen_name or self.username

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"
