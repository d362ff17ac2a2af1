"""Translate engine exceptions into HTTP errors."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status

from sizing.errors import (
    RoundLockedError,
    SaveFailedError,
    SaveInProgressError,
    UnknownPointError,
    UnknownRoundError,
)
from backend.db.store import DocumentNotFoundError


@contextmanager
def engine_errors() -> Iterator[None]:
    try:
        yield
    except (UnknownPointError, UnknownRoundError, DocumentNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (RoundLockedError, SaveInProgressError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SaveFailedError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except KeyError as exc:
        detail = exc.args[0] if exc.args else str(exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
