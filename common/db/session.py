from contextlib import contextmanager
import os
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")

# Ensure sqlite file parent directory exists to avoid 'unable to open database file'
if DATABASE_URL.startswith("sqlite:///") and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.split("sqlite:///")[-1]
    try:
        parent = Path(db_path).expanduser().resolve().parent
        parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        # best-effort; real error will surface on connect if still invalid
        pass


def build_engine(url: str):
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every checkout sees an empty database
        eng = create_engine(url, future=True, poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        eng = create_engine(url, future=True)
    if url.startswith("sqlite"):
        # sqlite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
        @event.listens_for(eng, "connect")
        def _enable_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return eng


def session_factory_for(bind):
    """Return a transactional session context manager bound to ``bind``."""
    maker = sessionmaker(bind=bind, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def _session():
        session = maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _session


engine = build_engine(DATABASE_URL)
get_session = session_factory_for(engine)


def init_db(bind=None) -> None:
    from ..models import shipping_zone, product, product_variant  # noqa: F401 register tables
    from ..models.base import Base

    Base.metadata.create_all(bind or engine)
