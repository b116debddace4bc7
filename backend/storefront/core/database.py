"""
Conexión a base de datos (SQLAlchemy)

Este módulo centraliza el acceso a la base de datos:
- Engine + session factory construidos desde DATABASE_URL
- Base declarativa para los modelos ORM
- Unidad de trabajo transaccional (session_scope)

PostgreSQL (psycopg2) en producción, SQLite para desarrollo local y tests.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base para modelos
Base = declarative_base()

# Seconds a SQLite writer waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for a database URL

    In-memory SQLite shares one connection across threads (StaticPool) so
    every session sees the same data. File-backed SQLite waits on locks
    instead of failing, which is what serializes concurrent writers.
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                echo=echo,
                connect_args=connect_args,
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=echo, connect_args=connect_args)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,  # Verificar conexión antes de usar
        pool_size=10,  # Número de conexiones en el pool
        max_overflow=20,  # Conexiones extras si se necesitan
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session Factory"""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all tables known to the ORM metadata"""
    # Register every model on Base.metadata before create_all
    from storefront import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Transactional unit of work

    Commits when the block exits normally, rolls back on any exception and
    always closes the session.

    Usage:
        with session_scope(session_factory) as session:
            ProductRepository(session).restock(product_id, 5)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_database(engine: Engine) -> Optional[str]:
    """Run a trivial query; returns the error message (for logs only) or None when healthy"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return None
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return str(e)
