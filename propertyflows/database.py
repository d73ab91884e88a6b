import asyncio
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from propertyflows.config import env


def get_database_url():
  """Get database URL with SSL configuration if needed."""
  database_url = env.DATABASE_URL

  # Add SSL parameters for staging/prod environments
  if (
    (env.is_staging() or env.is_production())
    and database_url
    and database_url.startswith("postgresql")
    and "sslmode" not in database_url
  ):
    separator = "&" if "?" in database_url else "?"
    database_url += f"{separator}sslmode=require"

  return database_url


def get_engine_options(database_url: str) -> dict:
  """Engine keyword arguments for the configured backend."""
  if database_url.startswith("sqlite"):
    # In-memory SQLite (tests) must share one connection across threads
    return {
      "connect_args": {"check_same_thread": False},
      "poolclass": StaticPool,
      "echo": env.DATABASE_ECHO,
    }

  return {
    "pool_size": env.DATABASE_POOL_SIZE,
    "max_overflow": env.DATABASE_MAX_OVERFLOW,
    "pool_timeout": env.DATABASE_POOL_TIMEOUT,
    "pool_recycle": env.DATABASE_POOL_RECYCLE,
    "pool_pre_ping": True,
    "echo": env.DATABASE_ECHO,
  }


def _session_scope():
  """
  Return an identifier for the current execution context.

  FastAPI runs multiple requests in the same thread via asyncio tasks.
  Using the current task as the scope avoids sharing the same SQLAlchemy
  Session across concurrent requests while still supporting threaded usage.
  """
  try:
    current_task = asyncio.current_task()
  except RuntimeError:
    current_task = None

  if current_task is not None:
    return current_task

  return threading.get_ident()


_database_url = get_database_url()
engine = create_engine(_database_url, **get_engine_options(_database_url))
SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
session = scoped_session(SessionFactory, scopefunc=_session_scope)


class Base(DeclarativeBase):
  """Base class for all models."""

  pass


# For backward compatibility
Model = Base


def get_db_session():
  """Get database session for FastAPI dependency injection."""
  db = session()
  try:
    yield db
  finally:
    session.remove()
