"""Stores and access checks the album services are built on."""

from albumguard.repositories.access import Permission, SqlAccessChecker
from albumguard.repositories.album_store import AlbumMetadata, SqlAlbumStore
from albumguard.repositories.asset_store import SqlAssetStore
from albumguard.repositories.protocols import AccessChecker, AlbumStore, AssetStore, UserStore
from albumguard.repositories.user_store import SqlUserStore

__all__ = [
    "AccessChecker",
    "AlbumMetadata",
    "AlbumStore",
    "AssetStore",
    "Permission",
    "SqlAccessChecker",
    "SqlAlbumStore",
    "SqlAssetStore",
    "SqlUserStore",
    "UserStore",
]
