"""albumguard database models."""

from albumguard.models.user import User
from albumguard.models.asset import Asset, AssetVisibility, TRIGGER_MANAGED_VISIBILITY
from albumguard.models.album import Album, AlbumAsset, AlbumUser, AlbumUserRole

__all__ = [
    "User",
    "Asset",
    "AssetVisibility",
    "TRIGGER_MANAGED_VISIBILITY",
    "Album",
    "AlbumAsset",
    "AlbumUser",
    "AlbumUserRole",
]
