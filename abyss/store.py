"""Threshold store: durable alert records keyed by user and asset.

Thresholds are stored in base units so that triggering compares integers,
never floats. The store is the only shared mutable state of the engine and
is called from poller threads and from the alert-management surface at the
same time, so every operation runs in its own short transaction under a
store-wide lock.
"""
import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import BigInteger, Column, String, TypeDecorator, delete, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from abyss.assets import Asset
from abyss.errors import UnknownUser
from utils.logging import get_logger

logger = get_logger("abyss.store")

# thresholds are u128 base units
MAX_THRESHOLD = 2**128 - 1
THRESHOLD_WIDTH = len(str(MAX_THRESHOLD))


class PaddedUnsigned(TypeDecorator):
    """Unsigned integer up to u128 kept as zero-padded fixed-width text.

    Equal width makes text order match numeric order, so ``<=``, ``==``
    and ``ORDER BY`` work in SQL on every backend.
    """

    impl = String
    cache_ok = True

    def __init__(self):
        super().__init__(length=THRESHOLD_WIDTH)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return f"{int(value):0{THRESHOLD_WIDTH}d}"

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class User(SQLModel, table=True):
    """Identity anchor; alert records require an existing user."""

    __tablename__ = "users"

    id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))


class TrackedToken(SQLModel, table=True):
    """One alert subscription: notify ``user_id`` once ``token`` capacity reaches ``amount``."""

    __tablename__ = "tracked_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(sa_type=BigInteger, foreign_key="users.id", ondelete="CASCADE", index=True)
    token: str = Field(index=True)
    amount: int = Field(sa_type=PaddedUnsigned)  # base units


@dataclass(frozen=True)
class AlertRecord:
    id: int
    user_id: int
    asset: Asset
    threshold: int


def _to_record(row: TrackedToken) -> AlertRecord:
    return AlertRecord(id=row.id, user_id=row.user_id, asset=Asset.from_symbol(row.token), threshold=row.amount)


def _check_threshold(threshold: int) -> int:
    threshold = int(threshold)
    if threshold < 0:
        raise ValueError(f"Threshold must be unsigned, got {threshold}")
    if threshold > MAX_THRESHOLD:
        raise ValueError(f"Threshold {threshold} exceeds the u128 maximum")
    return threshold


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine suitable for multi-threaded use.

    In-memory SQLite shares one connection (``StaticPool``) so every thread
    sees the same database.
    """
    kwargs = {"echo": echo}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    engine = create_engine(db_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class ThresholdStore:
    """Alert records plus the user table they hang off."""

    def __init__(self, db_url: str = "sqlite://", engine: Engine | None = None):
        self.engine = engine or create_store_engine(db_url)
        self._lock = threading.RLock()
        SQLModel.metadata.create_all(self.engine, tables=[User.__table__, TrackedToken.__table__])

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Yield a session inside the store lock; commits, or rolls back on error."""
        with self._lock:
            session = Session(self.engine, expire_on_commit=False)
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def close(self) -> None:
        self.engine.dispose()

    # users

    def create_user(self, user_id: int) -> None:
        """Register a user; existing users are left untouched."""
        with self.get_session() as session:
            if session.get(User, user_id) is None:
                session.add(User(id=user_id))

    def get_user(self, user_id: int) -> User | None:
        with self.get_session() as session:
            return session.get(User, user_id)

    def delete_user(self, user_id: int) -> None:
        """Remove a user together with all of its alert records."""
        with self.get_session() as session:
            session.exec(delete(TrackedToken).where(TrackedToken.user_id == user_id))
            user = session.get(User, user_id)
            if user is not None:
                session.delete(user)

    # alert records

    def insert(self, user_id: int, asset: Asset, threshold: int) -> int:
        threshold = _check_threshold(threshold)
        with self.get_session() as session:
            if session.get(User, user_id) is None:
                raise UnknownUser(user_id)
            row = TrackedToken(user_id=user_id, token=asset.symbol, amount=threshold)
            session.add(row)
            session.flush()
            return row.id

    def list_by_user(self, user_id: int) -> list[AlertRecord]:
        """All of a user's records, ordered by asset then threshold."""
        statement = (
            select(TrackedToken)
            .where(TrackedToken.user_id == user_id)
            .order_by(TrackedToken.token, TrackedToken.amount, TrackedToken.id)
        )
        with self.get_session() as session:
            return [_to_record(row) for row in session.exec(statement).all()]

    def delete_by_user_asset_threshold(self, user_id: int, asset: Asset, threshold: int) -> int:
        """Delete every record matching exactly; returns how many were removed."""
        statement = delete(TrackedToken).where(
            TrackedToken.user_id == user_id,
            TrackedToken.token == asset.symbol,
            TrackedToken.amount == int(threshold),
        )
        with self.get_session() as session:
            return session.exec(statement).rowcount

    def delete_all_by_user_asset(self, user_id: int, asset: Asset) -> int:
        statement = delete(TrackedToken).where(
            TrackedToken.user_id == user_id,
            TrackedToken.token == asset.symbol,
        )
        with self.get_session() as session:
            return session.exec(statement).rowcount

    def select_triggered(self, asset: Asset, available_capacity) -> list[AlertRecord]:
        """Records of ``asset`` whose threshold is at or below ``available_capacity``."""
        capacity = int(available_capacity)
        if capacity < 0:
            return []
        # stored thresholds never exceed MAX_THRESHOLD; clamping keeps the text width fixed
        capacity = min(capacity, MAX_THRESHOLD)
        statement = (
            select(TrackedToken)
            .where(TrackedToken.token == asset.symbol, TrackedToken.amount <= capacity)
            .order_by(TrackedToken.id)
        )
        with self.get_session() as session:
            return [_to_record(row) for row in session.exec(statement).all()]

    def delete_by_ids(self, ids: Iterable[int]) -> int:
        """Bulk delete by record id; unknown or already deleted ids are ignored."""
        ids = sorted(set(ids))
        if not ids:
            return 0
        with self.get_session() as session:
            removed = session.exec(delete(TrackedToken).where(TrackedToken.id.in_(ids))).rowcount
        logger.debug("Deleted %d of %d alert records by id", removed, len(ids))
        return removed
