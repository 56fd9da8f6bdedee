from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from src.domain.errors import StoreUnavailableError


@contextmanager
def store_errors(operation: str):
    """Translate SQLAlchemy failures into StoreUnavailableError"""
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreUnavailableError(operation, str(e)) from e
