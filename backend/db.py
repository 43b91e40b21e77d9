# db.py
import threading
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger("quizstore.db")

Base = declarative_base()

CONNECTING = "connecting"
CONNECTED = "connected"
DISCONNECTED = "disconnected"

# MySQL ER_DUP_ENTRY
_MYSQL_DUP_ENTRY = 1062


class StorageError(Exception):
    """A statement against the store failed."""


class ConflictError(StorageError):
    """An insert violated a unique key."""


def _is_duplicate(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ())
    if args and args[0] == _MYSQL_DUP_ENTRY:
        return True
    msg = str(orig).lower()
    return "unique constraint" in msg or "duplicate" in msg


def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, pool_recycle=3600)


class Store:
    """
    Process-wide handle on the relational store.

    Holds one engine (and its pool) for the life of the app. Every request goes
    through `run`, which executes one data-access function in its own session.
    """

    def __init__(self, engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self.state = CONNECTING
        self._stopping = threading.Event()
        self._retrying = threading.Lock()

    @classmethod
    def from_url(cls, url: str) -> "Store":
        return cls(build_engine(url))

    @contextmanager
    def session(self):
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def call(self, fn, *args, **kwargs):
        """Run fn(session, ...) and commit. Translates SQLAlchemy failures."""
        with self.session() as db:
            try:
                result = fn(db, *args, **kwargs)
                db.commit()
                return result
            except IntegrityError as e:
                db.rollback()
                if _is_duplicate(e):
                    raise ConflictError(str(e.orig)) from e
                raise StorageError(str(e.orig)) from e
            except OperationalError as e:
                db.rollback()
                # lost or refused connection; the watchdog reconnects
                self.state = DISCONNECTED
                raise StorageError(str(e.orig)) from e
            except SQLAlchemyError as e:
                db.rollback()
                raise StorageError(str(getattr(e, "orig", None) or e)) from e

    async def run(self, fn, *args, **kwargs):
        return await run_in_threadpool(self.call, fn, *args, **kwargs)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Store ping failed: %s", e)
            self.state = DISCONNECTED
            return False
        if self.state != CONNECTED:
            logger.info("Connected to database (%s)", self.engine.url.render_as_string(hide_password=True))
        self.state = CONNECTED
        return True

    @property
    def reconnecting(self) -> bool:
        return self._retrying.locked()

    def connect_with_retry(self, delay: float, attempts: int | None = None) -> bool:
        """Ping until the store answers. Returns False when attempts run out."""
        with self._retrying:
            tried = 0
            self.state = CONNECTING
            while (attempts is None or tried < attempts) and not self._stopping.is_set():
                if self.ping():
                    return True
                tried += 1
                logger.error("Error connecting to database. Retrying in %s seconds...", delay)
                if self._stopping.wait(delay):
                    break
            return False

    def ensure_schema(self) -> list[str]:
        """
        Create every table that does not exist yet, one at a time.

        A failing table is logged and skipped; routes touching it will fail
        later with a storage error. Returns the names of tables now present.
        """
        created = []
        for table in Base.metadata.sorted_tables:
            try:
                table.create(bind=self.engine, checkfirst=True)
            except SQLAlchemyError as e:
                logger.error("Error creating table %s: %s", table.name, e)
                continue
            logger.info("%s table created successfully or already exists.", table.name)
            created.append(table.name)
        return created

    def dispose(self):
        self.engine.dispose()
        self.state = DISCONNECTED

    def stop(self):
        """Abort any reconnect loop in progress."""
        self._stopping.set()
