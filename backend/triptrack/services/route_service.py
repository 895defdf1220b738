"""
Trip Track Backend — Route Service
====================================

What:  Route creation, likes, comments and every route listing.
Who:   Called by route handlers; UserService reuses SUMMARY_LOAD_OPTIONS
       for bookmarks.

Listings:
    get_routes_by_user   all of one creator's routes          limit 10
    get_public_routes    public routes                        limit 10
    get_routes           generic public feed, echoes page     limit 12
    search_routes        public, title/description/tag match  limit 10
    get_nearby_routes    public, start or end within radius   limit 10

All listings are newest-created first, ties broken by id (ids are time
ordered, so this is creation order).
"""

import logging
import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from triptrack.config import settings
from triptrack.database import delete_row, insert_ignore
from triptrack.exceptions import (
    AlreadyLikedError,
    CommentNotFoundError,
    DatabaseError,
    EmptyCommentError,
    NotAuthorizedError,
    NotLikedError,
    RouteNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from triptrack.geo import latitude_band, within_radius
from triptrack.ids import parse_id
from triptrack.models import Route, RouteComment, RouteTag, User, route_likes
from triptrack.schemas.common import Page, Point, parse_payload
from triptrack.schemas.route import RouteCreate, RouteFeedPage, RouteResponse, RouteSummary
from triptrack.services.pagination import paginate, slice_page

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500

# Full route: creator, likers and comment authors populated
ROUTE_LOAD_OPTIONS = (
    selectinload(Route.creator),
    selectinload(Route.likes),
    selectinload(Route.comments).selectinload(RouteComment.user),
    selectinload(Route.tag_rows),
)

# Feed card: only the creator is serialized, the collections feed the counts
SUMMARY_LOAD_OPTIONS = (
    selectinload(Route.creator),
    selectinload(Route.likes),
    selectinload(Route.comments),
    selectinload(Route.tag_rows),
)

NEWEST_FIRST = (Route.created_at.desc(), Route.id.desc())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RouteService:
    """Business logic layer for routes, likes and comments."""

    # ── Loading helpers ───────────────────────────────────────────────────

    async def _response(self, db: AsyncSession, route_id: uuid.UUID) -> RouteResponse:
        result = await db.execute(
            select(Route)
            .where(Route.id == route_id)
            .options(*ROUTE_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        route = result.scalar_one_or_none()
        if route is None:
            raise RouteNotFoundError(resource_id=str(route_id))
        return RouteResponse.model_validate(route)

    async def _require_route(self, db: AsyncSession, route_id: uuid.UUID) -> Route:
        route = await db.get(Route, route_id)
        if route is None:
            raise RouteNotFoundError(resource_id=str(route_id))
        return route

    async def _require_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        if await db.get(User, user_id) is None:
            raise UserNotFoundError(resource_id=str(user_id))

    async def _summaries(
        self, db: AsyncSession, query: Select, page: int, limit: int
    ) -> Page[RouteSummary]:
        try:
            routes, total, pages = await paginate(
                db, query.order_by(*NEWEST_FIRST), page, limit, SUMMARY_LOAD_OPTIONS
            )
        except SQLAlchemyError as e:
            logger.error("Route listing failed: %s", e, exc_info=True)
            raise DatabaseError()
        return Page[RouteSummary](
            data=[RouteSummary.model_validate(r) for r in routes],
            total=total,
            pages=pages,
        )

    # ── Create / Read ─────────────────────────────────────────────────────

    async def create_route(
        self, db: AsyncSession, data: Union[RouteCreate, Mapping[str, Any]]
    ) -> RouteResponse:
        """
        Persist a new route.

        Likes and comments start empty; visibility defaults to public.

        Raises:
            ValidationError: Bad coordinates, enum values or lengths
                (field-level messages in context["errors"])
            UserNotFoundError: creator_id does not exist
        """
        payload = parse_payload(RouteCreate, data)
        await self._require_user(db, payload.creator_id)

        route = Route(
            title=payload.title,
            creator_id=payload.creator_id,
            start_lat=payload.start_point.lat,
            start_lng=payload.start_point.lng,
            end_lat=payload.end_point.lat,
            end_lng=payload.end_point.lng,
            waypoints=[p.model_dump() for p in payload.waypoints],
            travel_mode=payload.travel_mode,
            description=payload.description,
            total_distance=payload.total_distance,
            total_time=payload.total_time,
            visibility=payload.visibility,
            tag_rows=[RouteTag(tag=tag) for tag in payload.tags],
        )
        db.add(route)
        await db.flush()

        logger.info("Route created: %s by %s (%s)", route.id, route.creator_id, route.travel_mode)
        return await self._response(db, route.id)

    async def get_route(self, db: AsyncSession, route_id: str) -> RouteResponse:
        """Raises InvalidIdError / RouteNotFoundError."""
        return await self._response(db, parse_id(route_id, "route_id"))

    # ── Likes ─────────────────────────────────────────────────────────────

    async def like_route(self, db: AsyncSession, route_id: str, user_id: str) -> RouteResponse:
        """
        Add `user_id` to the route's likes.

        The insert is keyed on (route_id, user_id), so two concurrent likes
        by the same user leave one row and one AlreadyLikedError.

        Raises:
            InvalidIdError / RouteNotFoundError / UserNotFoundError
            AlreadyLikedError: The user already likes the route
        """
        rid = parse_id(route_id, "route_id")
        uid = parse_id(user_id, "user_id")
        await self._require_route(db, rid)
        await self._require_user(db, uid)

        if not await insert_ignore(db, route_likes, {"route_id": rid, "user_id": uid}):
            raise AlreadyLikedError()

        logger.info("Route %s liked by %s", rid, uid)
        return await self._response(db, rid)

    async def unlike_route(self, db: AsyncSession, route_id: str, user_id: str) -> RouteResponse:
        """Raises NotLikedError if the user does not like the route."""
        rid = parse_id(route_id, "route_id")
        uid = parse_id(user_id, "user_id")
        await self._require_route(db, rid)

        if not await delete_row(db, route_likes, {"route_id": rid, "user_id": uid}):
            raise NotLikedError()

        logger.info("Route %s unliked by %s", rid, uid)
        return await self._response(db, rid)

    # ── Comments ──────────────────────────────────────────────────────────

    async def add_comment(
        self, db: AsyncSession, route_id: str, user_id: str, content: Optional[str]
    ) -> RouteResponse:
        """
        Add a comment; it becomes the first entry of the route's comments.

        Raises:
            InvalidIdError: Malformed route_id or user_id
            EmptyCommentError: Content is empty after trimming
            ValidationError: Content longer than 500 characters
            RouteNotFoundError / UserNotFoundError
        """
        rid = parse_id(route_id, "route_id")
        text = (content or "").strip()
        if not text:
            raise EmptyCommentError()
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                message=f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters",
                field="content",
            )
        uid = parse_id(user_id, "user_id")
        await self._require_route(db, rid)
        await self._require_user(db, uid)

        comment = RouteComment(route_id=rid, user_id=uid, content=text)
        db.add(comment)
        await db.flush()

        logger.info("Comment %s added to route %s by %s", comment.id, rid, uid)
        return await self._response(db, rid)

    async def remove_comment(
        self, db: AsyncSession, route_id: str, comment_id: str, user_id: str
    ) -> RouteResponse:
        """
        Remove a comment. Only its author may do so.

        Raises:
            InvalidIdError / RouteNotFoundError / CommentNotFoundError
            NotAuthorizedError: user_id is not the comment's author
        """
        rid = parse_id(route_id, "route_id")
        cid = parse_id(comment_id, "comment_id")
        uid = parse_id(user_id, "user_id")
        await self._require_route(db, rid)

        comment = await db.get(RouteComment, cid)
        if comment is None or comment.route_id != rid:
            raise CommentNotFoundError(resource_id=str(cid))
        if not comment.is_owner(uid):
            logger.warning("User %s tried to remove comment %s owned by %s", uid, cid, comment.user_id)
            raise NotAuthorizedError("remove this comment")

        await db.delete(comment)
        await db.flush()

        logger.info("Comment %s removed from route %s", cid, rid)
        return await self._response(db, rid)

    # ── Listings ──────────────────────────────────────────────────────────

    async def get_routes_by_user(
        self, db: AsyncSession, user_id: str, page: int = 1, limit: int = 10
    ) -> Page[RouteSummary]:
        uid = parse_id(user_id, "user_id")
        await self._require_user(db, uid)
        return await self._summaries(db, select(Route).where(Route.creator_id == uid), page, limit)

    async def get_public_routes(
        self, db: AsyncSession, page: int = 1, limit: int = 10
    ) -> Page[RouteSummary]:
        return await self._summaries(db, select(Route).where(Route.visibility == "public"), page, limit)

    async def get_routes(self, db: AsyncSession, page: int = 1, limit: int = 12) -> RouteFeedPage:
        """The generic public feed. Also echoes page and limit."""
        result = await self.get_public_routes(db, page, limit)
        return RouteFeedPage(
            data=result.data, total=result.total, pages=result.pages, page=page, limit=limit
        )

    async def search_routes(
        self, db: AsyncSession, query: str, page: int = 1, limit: int = 10
    ) -> Page[RouteSummary]:
        """
        Public routes whose title, description or one of whose tags
        contains `query`, case-insensitively. An empty query matches all.
        """
        pattern = f"%{_escape_like((query or '').strip())}%"
        tagged = select(RouteTag.route_id).where(RouteTag.tag.ilike(pattern, escape="\\"))
        stmt = select(Route).where(
            Route.visibility == "public",
            or_(
                Route.title.ilike(pattern, escape="\\"),
                Route.description.ilike(pattern, escape="\\"),
                Route.id.in_(tagged),
            ),
        )
        return await self._summaries(db, stmt, page, limit)

    async def get_nearby_routes(
        self,
        db: AsyncSession,
        lat: float,
        lng: float,
        radius_km: Optional[float] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[RouteSummary]:
        """
        Public routes whose start or end point lies within `radius_km` of
        (lat, lng), measured on a sphere of radius 6371 km.

        A latitude band narrows candidates in SQL; the exact spherical-cap
        test runs on the candidates.

        Raises:
            ValidationError: Centre out of bounds or radius not positive
        """
        center = parse_payload(Point, {"lat": lat, "lng": lng})
        radius = settings.nearby_default_radius_km if radius_km is None else radius_km
        if radius <= 0:
            raise ValidationError(message="Radius must be greater than 0", field="radius")

        low, high = latitude_band(center.lat, radius)
        stmt = (
            select(Route)
            .where(
                Route.visibility == "public",
                or_(
                    and_(Route.start_lat >= low, Route.start_lat <= high),
                    and_(Route.end_lat >= low, Route.end_lat <= high),
                ),
            )
            .order_by(*NEWEST_FIRST)
            .options(*SUMMARY_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        try:
            candidates = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Nearby route query failed: %s", e, exc_info=True)
            raise DatabaseError()

        matches = [
            route
            for route in candidates
            if within_radius(route.start_lat, route.start_lng, center.lat, center.lng, radius)
            or within_radius(route.end_lat, route.end_lng, center.lat, center.lng, radius)
        ]
        items, total, pages = slice_page(matches, page, limit)
        logger.debug(
            "Nearby (%s, %s) r=%skm: %d candidates, %d matches",
            center.lat, center.lng, radius, len(candidates), total,
        )
        return Page[RouteSummary](
            data=[RouteSummary.model_validate(r) for r in items], total=total, pages=pages
        )


# ── Singleton Instance ────────────────────────────────────────────────────
route_service = RouteService()
