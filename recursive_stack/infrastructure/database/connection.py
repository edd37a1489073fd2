"""
Database Connection Manager.

This module handles the low-level details of connecting to the durable store.
It exposes the SQLModel engine which will be used by the Repositories.
"""

from sqlmodel import create_engine, SQLModel
from ...config import settings


def build_engine(database_url: str):
    # SQLite connections are shared with the API worker threads
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    # echo=False in production to avoid leaking answers in logs
    return create_engine(database_url, echo=False, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)


def init_db(target_engine=None):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    """
    # Registers the table definitions on SQLModel.metadata
    from . import tables  # noqa: F401

    SQLModel.metadata.create_all(target_engine or engine)
