from typing import List, Optional
from sqlalchemy import String, DateTime, JSON, Float, Integer, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from boards.database import Base
from boards.models.user import new_id


class EventModel(Base):
    """Event hosted by a user"""
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_latitude_longitude", "latitude", "longitude"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(140), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Venue information
    venue_name: Mapped[Optional[str]] = mapped_column(String(140), nullable=True)
    address: Mapped[str] = mapped_column(String(280), nullable=False)
    neighborhood: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Event metadata
    vibe: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    event_type: Mapped[str] = mapped_column(String, nullable=False, default="other")
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    age_restriction: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    ticket_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Feedback-driven signals
    popularity_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    trust_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    host_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # System fields
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    host = relationship("User", back_populates="events")
    embedding = relationship("EventEmbedding", back_populates="event", uselist=False, cascade="all, delete-orphan")
    rsvps = relationship("RSVP", back_populates="event", cascade="all, delete-orphan")
    interactions = relationship("Interaction", back_populates="event", cascade="all, delete-orphan")

    # Attributes that feed the embedding; editing any of them regenerates it
    EMBEDDED_FIELDS = (
        'title', 'description', 'vibe', 'event_type', 'start_time', 'capacity', 'age_restriction'
    )


class EventEmbedding(Base):
    """Derived 8-dimensional vector for an event; regenerated on descriptive edits."""
    __tablename__ = "event_embeddings"

    event_id: Mapped[str] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    vector: Mapped[List[float]] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("EventModel", back_populates="embedding")
