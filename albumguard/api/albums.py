"""Album API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from albumguard.api.deps import get_album_service, get_current_user, service_errors
from albumguard.models.user import User
from albumguard.schemas.album import (
    AlbumAssetsRequest,
    AlbumCreateRequest,
    AlbumDetailResponse,
    AlbumResponse,
    AlbumsAddAssetsRequest,
    AlbumsAddAssetsResponse,
    AlbumStatisticsResponse,
    AlbumUpdateRequest,
    AlbumUserResponse,
    AlbumUsersAddRequest,
    AlbumUserUpdateRequest,
    BulkIdResponse,
)
from albumguard.services.album_service import AlbumDetail, AlbumService

router = APIRouter(prefix="/albums", tags=["albums"])


def _album_to_response(detail: AlbumDetail) -> AlbumDetailResponse:
    album = detail.album
    meta = detail.metadata
    return AlbumDetailResponse(
        id=album.id,
        name=album.name,
        description=album.description,
        owner_id=album.owner_id,
        thumbnail_asset_id=album.thumbnail_asset_id,
        hide_from_timeline=bool(album.hide_from_timeline),
        is_exclusive=bool(album.is_exclusive),
        is_activity_enabled=bool(album.is_activity_enabled),
        order=album.order,
        shared=bool(detail.album_users),
        album_users=[AlbumUserResponse(user_id=u.user_id, role=u.role) for u in detail.album_users],
        asset_count=meta.asset_count,
        start_date=meta.start_date.isoformat() if meta.start_date else None,
        end_date=meta.end_date.isoformat() if meta.end_date else None,
        created_at=album.created_at.isoformat() if album.created_at else "",
        updated_at=album.updated_at.isoformat() if album.updated_at else "",
        assets=detail.asset_ids,
    )


@router.get("", response_model=list[AlbumResponse])
def list_albums(
    asset_id: Optional[str] = Query(default=None),
    shared: Optional[bool] = Query(default=None),
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """List owned albums, shared / not-shared albums, or the albums holding an asset."""
    with service_errors():
        details = service.get_all(user.id, asset_id=asset_id, shared=shared)
    return [_album_to_response(d) for d in details]


@router.get("/statistics", response_model=AlbumStatisticsResponse)
def album_statistics(
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    with service_errors():
        return AlbumStatisticsResponse(**service.get_statistics(user.id))


@router.post("", response_model=AlbumDetailResponse, status_code=201)
def create_album(
    request: AlbumCreateRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Create a new album, optionally with assets and shared users."""
    with service_errors():
        detail = service.create(
            user.id,
            name=request.name,
            description=request.description,
            asset_ids=request.asset_ids,
            album_users=[(u.user_id, u.role) for u in request.album_users],
            hide_from_timeline=request.hide_from_timeline,
            is_exclusive=request.is_exclusive,
        )
    return _album_to_response(detail)


@router.post("/assets", response_model=AlbumsAddAssetsResponse)
def add_assets_to_albums(
    request: AlbumsAddAssetsRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Add the same assets to several albums at once."""
    with service_errors():
        result = service.add_assets_to_albums(user.id, request.album_ids, request.asset_ids)
    return AlbumsAddAssetsResponse(
        success=result.success,
        error=result.error.value if result.error else None,
    )


@router.get("/{album_id}", response_model=AlbumDetailResponse)
def get_album(
    album_id: str,
    without_assets: bool = Query(default=False),
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Get album details with asset ids and shared users."""
    with service_errors():
        detail = service.get(user.id, album_id, without_assets=without_assets)
    return _album_to_response(detail)


@router.patch("/{album_id}", response_model=AlbumResponse)
def update_album(
    album_id: str,
    request: AlbumUpdateRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Update album properties, including the hide-from-timeline and exclusive flags."""
    with service_errors():
        detail = service.update(user.id, album_id, request.model_dump(exclude_none=True))
    return _album_to_response(detail)


@router.delete("/{album_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_album(
    album_id: str,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Delete an album (does not delete the assets)."""
    with service_errors():
        service.delete(user.id, album_id)


@router.post("/{album_id}/assets", response_model=list[BulkIdResponse])
def add_assets(
    album_id: str,
    request: AlbumAssetsRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Add assets to an album."""
    with service_errors():
        results = service.add_assets(user.id, album_id, request.ids)
    return [
        BulkIdResponse(id=r.id, success=r.success, error=r.error.value if r.error else None)
        for r in results
    ]


@router.delete("/{album_id}/assets", response_model=list[BulkIdResponse])
def remove_assets(
    album_id: str,
    request: AlbumAssetsRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Remove assets from an album."""
    with service_errors():
        results = service.remove_assets(user.id, album_id, request.ids)
    return [
        BulkIdResponse(id=r.id, success=r.success, error=r.error.value if r.error else None)
        for r in results
    ]


@router.post("/{album_id}/users", response_model=AlbumResponse)
def add_users(
    album_id: str,
    request: AlbumUsersAddRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Share an album with users."""
    with service_errors():
        detail = service.add_users(user.id, album_id, [(u.user_id, u.role) for u in request.album_users])
    return _album_to_response(detail)


@router.patch("/{album_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_album_user(
    album_id: str,
    user_id: str,
    request: AlbumUserUpdateRequest,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    with service_errors():
        service.update_user(user.id, album_id, user_id, request.role)


@router.delete("/{album_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_album_user(
    album_id: str,
    user_id: str,
    user: User = Depends(get_current_user),
    service: AlbumService = Depends(get_album_service),
):
    """Remove a user from an album. ``me`` leaves the album."""
    with service_errors():
        service.remove_user(user.id, album_id, user_id)
