"""Request-scoped dependencies shared by the routers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from fastapi import Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError

from earnhub.errors import DatabaseError
from earnhub.logging_config import get_logger
from earnhub.settings import Settings
from earnhub.storage.db import Database

logger = get_logger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent.parent

templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


@contextmanager
def database_errors(message: str, as_json: bool = False) -> Generator[None, None, None]:
    """Convert query failures into a DatabaseError carrying a client-safe message."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("database_error", message=message, error=str(e), exc_info=True)
        raise DatabaseError(message, as_json=as_json) from e
