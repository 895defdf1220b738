"""
Trip Track Backend — Route SQLAlchemy Models
==============================================

What:  ORM models for `routes`, their comments, tags and likes.
Why:   A route is a travel path (start, end, ordered waypoints) with social
       metadata attached.

Table Design Rationale:
    - start/end points: four float columns so the "nearby" query can
      prefilter on latitude with an index.
    - waypoints: ordered JSON list of {"lat", "lng"} objects; never queried.
    - route_likes: (route_id, user_id) composite key, one like per user.
    - route_comments: own table, read newest-first by (created_at, id).
    - route_tags: (route_id, tag) composite key, lowercase tags as a set.
    - like_count / comment_count are computed from the loaded collections,
      never stored, so there is no second source of truth.

    Indexes:
        (creator_id, created_at DESC)  routes by user
        (visibility, created_at DESC)  public feed, search
        start_lat / end_lat            nearby prefilter
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from triptrack.database import Base
from triptrack.models.mixins import IdMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from triptrack.models.user import User


route_likes = Table(
    "route_likes",
    Base.metadata,
    Column("route_id", Uuid, ForeignKey("routes.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class RouteTag(Base):
    __tablename__ = "route_tags"

    route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("routes.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(20), primary_key=True, index=True)


class RouteComment(IdMixin, Base):
    """
    A comment on a route.

    Owned by its route: created and removed only through RouteService, and
    only its author may remove it.
    """

    __tablename__ = "route_comments"

    route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped["User"] = relationship("User")

    def is_owner(self, user_id: uuid.UUID) -> bool:
        return self.user_id == user_id


class Route(IdMixin, TimestampMixin, Base):
    """A shared travel route. The creator is fixed at creation."""

    __tablename__ = "routes"

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    start_lat: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    start_lng: Mapped[float] = mapped_column(Float, nullable=False)
    end_lat: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    end_lng: Mapped[float] = mapped_column(Float, nullable=False)
    waypoints: Mapped[List[Dict[str, float]]] = mapped_column(JSON, nullable=False, default=list)
    travel_mode: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    total_distance: Mapped[float] = mapped_column(Float, nullable=False)
    total_time: Mapped[float] = mapped_column(Float, nullable=False)
    visibility: Mapped[str] = mapped_column(String(20), nullable=False, default="public")

    creator: Mapped["User"] = relationship("User")
    likes: Mapped[List["User"]] = relationship("User", secondary=route_likes, viewonly=True)
    # Comment rows are inserted and deleted directly by RouteService
    comments: Mapped[List[RouteComment]] = relationship(
        RouteComment,
        order_by=lambda: [RouteComment.created_at.desc(), RouteComment.id.desc()],
        passive_deletes=True,
    )
    tag_rows: Mapped[List[RouteTag]] = relationship(
        RouteTag,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_routes_creator_created_at", "creator_id", "created_at"),
        Index("idx_routes_visibility_created_at", "visibility", "created_at"),
    )

    # ── Derived attributes ────────────────────────────────────────────────
    @property
    def start_point(self) -> Dict[str, float]:
        return {"lat": self.start_lat, "lng": self.start_lng}

    @property
    def end_point(self) -> Dict[str, float]:
        return {"lat": self.end_lat, "lng": self.end_lng}

    @property
    def tags(self) -> List[str]:
        return sorted(row.tag for row in self.tag_rows)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, title='{self.title}', visibility='{self.visibility}')>"
