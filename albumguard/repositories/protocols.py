"""Collaborator contracts used by the album services.

No I/O here. The SQLModel implementations live next to this module;
tests substitute in-memory fakes.
"""

from typing import Iterable, Optional, Protocol, runtime_checkable

from albumguard.models.album import Album, AlbumUser
from albumguard.models.asset import Asset, AssetVisibility
from albumguard.services.trigger_engine import AlbumFlags


@runtime_checkable
class AlbumStore(Protocol):
    def get(self, album_id: str) -> Optional[Album]:
        ...

    def create(self, album: Album, album_users: Iterable[tuple[str, str]] = ()) -> Album:
        """Insert an album and its shared users together."""
        ...

    def update(self, album_id: str, changes: dict) -> Album:
        ...

    def get_flags(self, album_id: str) -> AlbumFlags:
        ...

    def delete(self, album_id: str) -> None:
        ...

    def get_owned(self, user_id: str) -> list[Album]:
        ...

    def get_shared(self, user_id: str) -> list[Album]:
        ...

    def get_not_shared(self, user_id: str) -> list[Album]:
        ...

    def get_metadata_for_ids(self, album_ids: Iterable[str]) -> dict:
        """Asset count and date range per album id."""
        ...

    def update_thumbnails(self, album_ids: Iterable[str]) -> None:
        ...

    def get_asset_ids(self, album_id: str, asset_ids: Optional[Iterable[str]] = None) -> set[str]:
        """Member asset ids of an album, optionally restricted to ``asset_ids``."""
        ...

    def add_membership(self, album_id: str, asset_ids: Iterable[str]) -> set[str]:
        """Add edges; returns the ids that were not members before."""
        ...

    def remove_membership(self, album_id: str, asset_ids: Iterable[str]) -> set[str]:
        """Remove edges; returns the ids that were members before."""
        ...

    def revoke_membership(self, album_id: str, asset_id: str) -> None:
        """Remove exactly one edge. Raises ConflictAlreadyAbsent if it is gone."""
        ...

    def get_flagged_albums_for_assets(self, asset_ids: Iterable[str]) -> dict[str, list[AlbumFlags]]:
        """Hiding or exclusive albums holding each asset, whoever owns them."""
        ...

    def get_asset_ids_in_hiding_albums(self, asset_ids: Iterable[str]) -> set[str]:
        ...

    def get_member_albums_for_asset(self, user_id: str, asset_id: str) -> list[Album]:
        """Albums visible to ``user_id`` that contain ``asset_id``. Raises NotFoundError."""
        ...

    def get_album_users(self, album_id: str) -> list[AlbumUser]:
        ...

    def add_user(self, album_id: str, user_id: str, role: str) -> AlbumUser:
        ...

    def remove_user(self, album_id: str, user_id: str) -> None:
        ...

    def update_user(self, album_id: str, user_id: str, role: str) -> AlbumUser:
        ...


@runtime_checkable
class AssetStore(Protocol):
    def get(self, asset_id: str) -> Optional[Asset]:
        ...

    def bulk_set_visibility(self, asset_ids: Iterable[str], value: AssetVisibility) -> int:
        """Atomically set a trigger-managed visibility on a batch; returns rows changed."""
        ...

    def set_visibility(self, asset_ids: Iterable[str], value: AssetVisibility) -> int:
        """Unconditional update for explicit user choices; returns rows changed."""
        ...


@runtime_checkable
class UserStore(Protocol):
    def get_existing_ids(self, user_ids: Iterable[str]) -> set[str]:
        ...


@runtime_checkable
class AccessChecker(Protocol):
    def check(self, user_id: str, permission: str, ids: Iterable[str]) -> set[str]:
        ...

    def require(self, user_id: str, permission: str, ids: Iterable[str]) -> None:
        ...
