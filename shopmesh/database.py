import threading
from datetime import datetime, timezone
from typing import Callable, Generic, Optional, TypeVar

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

T = TypeVar("T")


def utcnow() -> datetime:
    # SQLite drops tzinfo, so timestamps are kept as naive UTC throughout
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_session_factory(database_url: str = "sqlite://"):
    """Build an engine and session factory for one service's collection.

    The default URL is a private in-memory SQLite database. StaticPool keeps
    the single connection alive for the life of the process so the data
    does not vanish between sessions.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {}

    engine = create_engine(database_url, **kwargs)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return engine, SessionLocal


class Store(Generic[T]):
    """Process-wide record collection owned by a single service.

    Every operation runs under one re-entrant lock, so a lookup followed by
    a mutation (``update``) is atomic with respect to other request threads.
    Returned records are detached snapshots; changes only persist through
    ``update``.
    """

    def __init__(self, model, session_factory):
        self.model = model
        self._session_factory = session_factory
        self.lock = threading.RLock()

    def append(self, record: T) -> T:
        with self.lock, self._session_factory() as session:
            session.add(record)
            session.commit()
            return record

    def find_by_id(self, record_id: str) -> Optional[T]:
        with self.lock, self._session_factory() as session:
            return session.get(self.model, record_id)

    def find_by(self, *criteria, order_by=None, limit: Optional[int] = None) -> list[T]:
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.lock, self._session_factory() as session:
            return list(session.scalars(stmt))

    def all(self) -> list[T]:
        return self.find_by()

    def update(self, record_id: str, mutate: Callable[[T], None]) -> Optional[T]:
        """Apply ``mutate`` to the stored record and commit.

        Returns None when the record does not exist. Exceptions raised by
        ``mutate`` roll the change back and propagate.
        """
        with self.lock, self._session_factory() as session:
            record = session.get(self.model, record_id)
            if record is None:
                return None
            mutate(record)
            session.commit()
            return record
