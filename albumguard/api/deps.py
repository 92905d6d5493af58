"""Common API dependencies: current user extraction, service wiring, error mapping."""

import logging
from contextlib import contextmanager

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from albumguard.config import settings
from albumguard.database import get_session
from albumguard.errors import (
    ConflictAlreadyAbsent,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
    StoreFailure,
)
from albumguard.models.user import User
from albumguard.repositories import SqlAccessChecker, SqlAlbumStore, SqlAssetStore, SqlUserStore
from albumguard.services.album_service import AlbumService
from albumguard.services.events import event_bus
from albumguard.utils.locks import asset_locks
from albumguard.utils.security import user_id_from_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """The acting user of an album operation, from the bearer access token."""
    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_album_service(session: Session = Depends(get_session)) -> AlbumService:
    """FastAPI dependency: an AlbumService bound to the request's session."""
    return AlbumService(
        albums=SqlAlbumStore(session),
        assets=SqlAssetStore(session),
        access=SqlAccessChecker(session),
        users=SqlUserStore(session),
        events=event_bus,
        locks=asset_locks if settings.serialize_asset_triggers else None,
    )


@contextmanager
def service_errors():
    """Translate service errors into HTTP errors with the failing precondition."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictAlreadyAbsent as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreFailure as e:
        logger.error("Store failure: %s", e)
        raise HTTPException(status_code=503, detail="Storage unavailable, retry the request")
