"""Album, membership and sharing models."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class AlbumUserRole(str, Enum):
    EDITOR = "editor"
    VIEWER = "viewer"


class Album(SQLModel, table=True):
    __tablename__ = "albums"

    id: str = Field(default_factory=lambda: f"alb_{secrets.token_hex(4)}", primary_key=True)
    owner_id: str = Field(foreign_key="users.id", index=True)
    name: str
    description: str = Field(default="")
    thumbnail_asset_id: Optional[str] = Field(default=None, foreign_key="assets.id")
    hide_from_timeline: bool = Field(default=False)
    is_exclusive: bool = Field(default=False)
    is_activity_enabled: bool = Field(default=True)
    order: str = Field(default="desc")  # 'asc' | 'desc'
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AlbumAsset(SQLModel, table=True):
    """Membership edge between one album and one asset."""

    __tablename__ = "album_assets"
    __table_args__ = (UniqueConstraint("album_id", "asset_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    album_id: str = Field(foreign_key="albums.id", index=True)
    asset_id: str = Field(foreign_key="assets.id", index=True)
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AlbumUser(SQLModel, table=True):
    __tablename__ = "album_users"
    __table_args__ = (UniqueConstraint("album_id", "user_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    album_id: str = Field(foreign_key="albums.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: str = Field(default=AlbumUserRole.EDITOR.value)  # 'editor' | 'viewer'
