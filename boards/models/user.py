"""User model."""
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, DateTime, Float, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from boards.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """A person who hosts, browses and RSVPs to events."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    home_neighborhood: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Recommendation state
    vibe_prefs: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    taste_vector: Mapped[List[float]] = mapped_column(JSON, nullable=False, default=list)  # [] until computed
    trust_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    events = relationship("EventModel", back_populates="host", cascade="all, delete-orphan")
    rsvps = relationship("RSVP", back_populates="user", cascade="all, delete-orphan")
    interactions = relationship("Interaction", back_populates="user", cascade="all, delete-orphan")
    followers = relationship(
        "Follow", foreign_keys="Follow.following_id", back_populates="followed", cascade="all, delete-orphan"
    )
    following = relationship(
        "Follow", foreign_keys="Follow.follower_id", back_populates="follower", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        """Public profile fields."""
        return {
            'id': self.id,
            'username': self.username,
            'display_name': self.display_name,
            'bio': self.bio,
            'avatar_url': self.avatar_url,
            'home_neighborhood': self.home_neighborhood,
            'vibe_prefs': self.vibe_prefs or [],
            'trust_score': self.trust_score,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Follow(Base):
    """``follower`` follows ``following``; at most once per pair."""
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_follower_id_following_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    follower_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    follower = relationship("User", foreign_keys=[follower_id], back_populates="following")
    followed = relationship("User", foreign_keys=[following_id], back_populates="followers")
