"""SQLAlchemy-backed photo cache."""

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy import (
    Boolean,
    DateTime,
    Engine,
    Integer,
    StaticPool,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    sessionmaker,
)

from image_feed.domain.photos import Photo, PhotoUrls
from image_feed.services.cache import DEFAULT_CACHE_TTL_SECONDS, PhotoCache, utc_now

_logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for cache tables."""


class CachedPhotoRow(Base):
    __tablename__ = "cached_photos"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)
    is_liked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    small_url: Mapped[str] = mapped_column(String, nullable=False)
    regular_url: Mapped[str] = mapped_column(String, nullable=False)
    full_url: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)


def create_cache_engine(database_url: str) -> Engine:
    """Create an engine that can be shared by the loop and worker threads."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)
    if database_url in {"sqlite://", "sqlite:///:memory:"}:
        # In-memory SQLite lives in a single connection.
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, connect_args={"check_same_thread": False})


@dataclass
class SqlAlchemyPhotoCache(PhotoCache):
    """Photo cache stored in a relational table keyed by photo id."""

    session_factory: sessionmaker[Session]
    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    clock: Callable[[], datetime] = utc_now
    _write_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    @classmethod
    def create(
        cls,
        database_url: str,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> "SqlAlchemyPhotoCache":
        """Create the cache and its table for the given database URL.

        An unusable database is logged and the cache is still returned; its
        operations then degrade to empty results.
        """
        engine = create_cache_engine(database_url)
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError:
            _logger.exception("Failed to prepare photo cache at %s", database_url)
        return cls(
            session_factory=sessionmaker(bind=engine, expire_on_commit=False),
            ttl_seconds=ttl_seconds,
            clock=clock,
        )

    def save_photos(self, photos: Sequence[Photo], starting_from_position: int) -> None:
        """Upsert photos at consecutive positions in one transaction."""
        if not photos:
            return
        now = _to_storage(self.clock())
        try:
            with self._write_lock, self.session_factory.begin() as session:
                for index, photo in enumerate(photos):
                    row = session.get(CachedPhotoRow, photo.id)
                    if row is None:
                        row = CachedPhotoRow(id=photo.id)
                        session.add(row)
                    _apply_photo(row, photo, starting_from_position + index, now)
        except SQLAlchemyError:
            _logger.exception("Failed to save %s photos to cache", len(photos))

    def shift_cached_photos_positions(self, offset: int) -> None:
        """Shift every position with one UPDATE, per row if that fails."""
        if offset == 0:
            return
        with self._write_lock:
            try:
                with self.session_factory.begin() as session:
                    shifted = self._shift_positions_bulk(session, offset)
            except SQLAlchemyError:
                _logger.exception(
                    "Bulk position shift failed, falling back to per-row update"
                )
            else:
                _logger.info(
                    "Shifted %s cached photos by %s positions", shifted, offset
                )
                return
            self._shift_positions_per_row(offset)

    def fetch_all_cached_photos(self) -> list[Photo]:
        """Return all cached photos ordered by position."""
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(CachedPhotoRow).order_by(CachedPhotoRow.position)
                ).all()
        except SQLAlchemyError:
            _logger.exception("Failed to fetch cached photos")
            return []
        return [_to_photo(row) for row in rows]

    def needs_cache_refresh(self) -> bool:
        """Return True when nothing is cached or the newest write is stale."""
        try:
            with self.session_factory() as session:
                latest = session.scalar(select(func.max(CachedPhotoRow.last_updated)))
        except SQLAlchemyError:
            _logger.exception("Failed to check cache freshness")
            return True
        if latest is None:
            return True
        age = self.clock() - _from_storage(latest)
        return age > timedelta(seconds=self.ttl_seconds)

    def photo_exists(self, photo_id: str) -> bool:
        """Return True if the id is cached."""
        try:
            with self.session_factory() as session:
                return session.get(CachedPhotoRow, photo_id) is not None
        except SQLAlchemyError:
            _logger.exception("Failed to look up cached photo %s", photo_id)
            return False

    def get_cached_photos_count(self) -> int:
        """Return the number of cached rows."""
        try:
            with self.session_factory() as session:
                count = session.scalar(select(func.count()).select_from(CachedPhotoRow))
        except SQLAlchemyError:
            _logger.exception("Failed to count cached photos")
            return 0
        return count or 0

    def update_photo_like_status(self, photo_id: str, is_liked: bool) -> None:
        """Patch is_liked and last_updated of one row."""
        try:
            with self._write_lock, self.session_factory.begin() as session:
                session.execute(
                    update(CachedPhotoRow)
                    .where(CachedPhotoRow.id == photo_id)
                    .values(is_liked=is_liked, last_updated=_to_storage(self.clock()))
                )
        except SQLAlchemyError:
            _logger.exception("Failed to update like status of %s", photo_id)

    def clear_cache(self) -> None:
        """Delete every cached row."""
        try:
            with self._write_lock, self.session_factory.begin() as session:
                session.execute(delete(CachedPhotoRow))
        except SQLAlchemyError:
            _logger.exception("Failed to clear photo cache")
            return
        _logger.info("Photo cache cleared")

    def get_cached_photos(self, start_position: int, count: int) -> list[Photo]:
        """Return rows whose position falls in the requested window."""
        if count <= 0:
            return []
        end_position = start_position + count - 1
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(CachedPhotoRow)
                    .where(CachedPhotoRow.position >= start_position)
                    .where(CachedPhotoRow.position <= end_position)
                    .order_by(CachedPhotoRow.position)
                ).all()
        except SQLAlchemyError:
            _logger.exception(
                "Failed to fetch cached photos from position %s", start_position
            )
            return []
        return [_to_photo(row) for row in rows]

    def _shift_positions_bulk(self, session: Session, offset: int) -> int:
        result = session.execute(
            update(CachedPhotoRow).values(position=CachedPhotoRow.position + offset)
        )
        return result.rowcount

    def _shift_positions_per_row(self, offset: int) -> None:
        try:
            with self.session_factory.begin() as session:
                rows = session.scalars(select(CachedPhotoRow)).all()
                for row in rows:
                    row.position += offset
        except SQLAlchemyError:
            _logger.exception("Per-row position shift failed")
            return
        _logger.info(
            "Fallback shifted %s cached photos by %s positions", len(rows), offset
        )


def _apply_photo(
    row: CachedPhotoRow, photo: Photo, position: int, updated: datetime
) -> None:
    row.created_at = _to_storage(photo.created_at) if photo.created_at else None
    row.width = photo.width
    row.height = photo.height
    row.color = photo.color
    row.is_liked = photo.is_liked
    row.description = photo.description
    row.small_url = photo.urls.small
    row.regular_url = photo.urls.regular
    row.full_url = photo.urls.full
    row.position = position
    row.last_updated = updated


def _to_photo(row: CachedPhotoRow) -> Photo:
    return Photo(
        id=row.id,
        created_at=_from_storage(row.created_at) if row.created_at else None,
        width=row.width,
        height=row.height,
        color=row.color,
        is_liked=row.is_liked,
        description=row.description,
        urls=PhotoUrls(
            small=row.small_url,
            regular=row.regular_url,
            full=row.full_url,
        ),
    )


def _to_storage(value: datetime) -> datetime:
    """Store datetimes as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_storage(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
