from sqlalchemy import (
    Column,
    String,
    Text,
    JSON,
    ForeignKey,
    Table,
    Index,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin

CATEGORIES = (
    "sports",
    "politics",
    "space",
    "technology",
    "entertainment",
    "health",
    "science",
    "business",
    "education",
    "travel",
    "food",
    "fashion",
    "art",
    "music",
    "gaming",
    "environment",
)


def _reaction_table(name: str) -> Table:
    # (article, user) pairs; CASCADE so rows go away with either side
    return Table(
        name,
        Base.metadata,
        Column("article_id", String(36), ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
        Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )


article_likes = _reaction_table("article_likes")
article_dislikes = _reaction_table("article_dislikes")
article_blocks = _reaction_table("article_blocks")


class Article(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "articles"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(32), nullable=False)  # one of CATEGORIES (validated in schema)
    image = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    author = relationship("User", back_populates="articles")

    liked_by = relationship("User", secondary=article_likes)
    disliked_by = relationship("User", secondary=article_dislikes)
    blocked_by = relationship("User", secondary=article_blocks)

    __table_args__ = (
        Index("ix_articles_created_at", "created_at"),
        Index("ix_articles_category", "category"),
    )

    def is_blocked_for(self, user) -> bool:
        return any(u.id == user.id for u in self.blocked_by)

    def toggle_block(self, user) -> bool:
        """Flip the block state for ``user``; returns the new state."""
        return _toggle(self.blocked_by, user)

    def toggle_like(self, user) -> bool:
        liked = _toggle(self.liked_by, user)
        if liked:
            _discard(self.disliked_by, user)
        return liked

    def toggle_dislike(self, user) -> bool:
        disliked = _toggle(self.disliked_by, user)
        if disliked:
            _discard(self.liked_by, user)
        return disliked


def _discard(members: list, user) -> bool:
    for existing in list(members):
        if existing.id == user.id:
            members.remove(existing)
            return True
    return False


def _toggle(members: list, user) -> bool:
    if _discard(members, user):
        return False
    members.append(user)
    return True
