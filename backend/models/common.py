"""Common database utilities and base models"""

import functools
import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.engine import Engine
from sqlmodel import create_engine, Session
from typing import Generator

import logging

logger = logging.getLogger("tapin.db")


@functools.cache
def get_engine() -> Engine:  # pragma: no cover
    from settings import DATABASE_URL

    connect_args = {}
    if DATABASE_URL.startswith("sqlite"):
        # get_session runs in the threadpool, the async routes use it on the loop
        connect_args["check_same_thread"] = False
    return create_engine(DATABASE_URL, connect_args=connect_args)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def new_id() -> str:
    return str(uuid.uuid4())


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Sort two identities so both call orders map to the same pair.
    >>> canonical_pair("b", "a")
    ('a', 'b')
    """
    return (a, b) if a < b else (b, a)


def get_session() -> Generator[Session, None, None]:  # pragma: no cover
    """Get database session for FastAPI dependency, always closes session."""
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


def parse_bool(bool_str: str | bool):
    if isinstance(bool_str, str):
        return bool_str.lower() in ("true", "1")
    return bool(bool_str)
