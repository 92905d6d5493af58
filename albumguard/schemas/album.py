"""Album request/response schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AlbumUserRequest(BaseModel):
    user_id: str
    role: Literal["editor", "viewer"] = "editor"


class AlbumCreateRequest(BaseModel):
    name: str
    description: str = ""
    asset_ids: list[str] = Field(default_factory=list)
    album_users: list[AlbumUserRequest] = Field(default_factory=list)
    hide_from_timeline: bool = False
    is_exclusive: bool = False


class AlbumUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    thumbnail_asset_id: Optional[str] = None
    is_activity_enabled: Optional[bool] = None
    order: Optional[Literal["asc", "desc"]] = None
    hide_from_timeline: Optional[bool] = None
    is_exclusive: Optional[bool] = None


class AlbumUserResponse(BaseModel):
    user_id: str
    role: str


class AlbumResponse(BaseModel):
    id: str
    name: str
    description: str
    owner_id: str
    thumbnail_asset_id: Optional[str]
    hide_from_timeline: bool
    is_exclusive: bool
    is_activity_enabled: bool
    order: str
    shared: bool
    album_users: list[AlbumUserResponse]
    asset_count: int
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: str
    updated_at: str


class AlbumDetailResponse(AlbumResponse):
    assets: Optional[list[str]] = None  # asset IDs


class AlbumStatisticsResponse(BaseModel):
    owned: int
    shared: int
    not_shared: int


class AlbumAssetsRequest(BaseModel):
    ids: list[str]


class AlbumsAddAssetsRequest(BaseModel):
    album_ids: list[str]
    asset_ids: list[str]


class AlbumsAddAssetsResponse(BaseModel):
    success: bool
    error: Optional[str] = None


class BulkIdResponse(BaseModel):
    id: str
    success: bool
    error: Optional[str] = None


class AlbumUsersAddRequest(BaseModel):
    album_users: list[AlbumUserRequest]


class AlbumUserUpdateRequest(BaseModel):
    role: Literal["editor", "viewer"]
