"""Asset API endpoints: timeline listing and explicit visibility changes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from albumguard.api.deps import get_current_user, service_errors
from albumguard.database import get_session
from albumguard.models.asset import Asset, AssetVisibility
from albumguard.models.user import User
from albumguard.repositories import Permission, SqlAccessChecker, SqlAlbumStore, SqlAssetStore
from albumguard.schemas.asset import (
    AssetListResponse,
    AssetResponse,
    AssetVisibilityRequest,
    AssetVisibilityResponse,
)
from albumguard.services import asset_service

router = APIRouter(prefix="/assets", tags=["assets"])


def _asset_to_response(a: Asset) -> AssetResponse:
    return AssetResponse(
        id=a.id,
        owner_id=a.owner_id,
        original_file_name=a.original_file_name,
        file_created_at=a.file_created_at.isoformat() if a.file_created_at else None,
        visibility=a.visibility,
        is_favorite=bool(a.is_favorite),
        created_at=a.created_at.isoformat() if a.created_at else "",
    )


@router.get("", response_model=AssetListResponse)
def list_assets(
    visibility: AssetVisibility = Query(default=AssetVisibility.TIMELINE),
    limit: int = Query(default=200, ge=1, le=1000),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """List the user's assets with one visibility, newest first (the timeline by default)."""
    with service_errors():
        assets = SqlAssetStore(session).get_timeline(user.id, visibility, limit=limit)
    return AssetListResponse(
        assets=[_asset_to_response(a) for a in assets],
        total_count=len(assets),
    )


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    with service_errors():
        if not SqlAccessChecker(session).check(user.id, Permission.ASSET_SHARE, [asset_id]):
            raise HTTPException(status_code=404, detail="Asset not found")
        asset = SqlAssetStore(session).get(asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return _asset_to_response(asset)


@router.put("", response_model=AssetVisibilityResponse)
def set_asset_visibility(
    request: AssetVisibilityRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Archive, lock, hide or restore owned assets.

    ``album-hidden`` is derived from album membership and cannot be set here.
    """
    try:
        value = AssetVisibility(request.visibility)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown visibility: {request.visibility}")

    with service_errors():
        updated = asset_service.set_visibility(
            user.id,
            request.ids,
            value,
            assets=SqlAssetStore(session),
            albums=SqlAlbumStore(session),
            access=SqlAccessChecker(session),
        )
    return AssetVisibilityResponse(updated=updated)
