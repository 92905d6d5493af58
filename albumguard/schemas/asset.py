"""Asset request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class AssetResponse(BaseModel):
    id: str
    owner_id: str
    original_file_name: str
    file_created_at: Optional[str]
    visibility: str
    is_favorite: bool
    created_at: str


class AssetListResponse(BaseModel):
    assets: list[AssetResponse]
    total_count: int


class AssetVisibilityRequest(BaseModel):
    ids: list[str]
    visibility: str  # 'archive' | 'timeline' | 'hidden' | 'locked'


class AssetVisibilityResponse(BaseModel):
    updated: int
