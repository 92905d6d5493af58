"""Asset model and visibility values."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class AssetVisibility(str, Enum):
    ARCHIVE = "archive"
    TIMELINE = "timeline"
    HIDDEN = "hidden"
    LOCKED = "locked"
    ALBUM_HIDDEN = "album-hidden"


# The only values album triggers may read over or write.
TRIGGER_MANAGED_VISIBILITY = frozenset({AssetVisibility.TIMELINE, AssetVisibility.ALBUM_HIDDEN})


class Asset(SQLModel, table=True):
    __tablename__ = "assets"

    id: str = Field(default_factory=lambda: f"ast_{secrets.token_hex(4)}", primary_key=True)
    owner_id: str = Field(foreign_key="users.id", index=True)
    original_file_name: str
    file_created_at: Optional[datetime] = Field(default=None, index=True)
    visibility: str = Field(default=AssetVisibility.TIMELINE.value, index=True)
    is_favorite: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
