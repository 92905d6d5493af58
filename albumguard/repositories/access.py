"""Album and asset access checks."""

from enum import Enum
from typing import Iterable

from sqlalchemy import or_
from sqlmodel import Session, col, select

from albumguard.errors import PermissionDeniedError
from albumguard.models.album import Album, AlbumAsset, AlbumUser, AlbumUserRole
from albumguard.models.asset import Asset
from albumguard.repositories.base import store_call


class Permission(str, Enum):
    ALBUM_READ = "album.read"
    ALBUM_UPDATE = "album.update"
    ALBUM_DELETE = "album.delete"
    ALBUM_SHARE = "album.share"
    ALBUM_ASSET_CREATE = "album.asset.create"
    ALBUM_ASSET_DELETE = "album.asset.delete"
    ASSET_SHARE = "asset.share"
    ASSET_UPDATE = "asset.update"


OWNER_ONLY = {Permission.ALBUM_DELETE, Permission.ALBUM_SHARE}
OWNER_OR_EDITOR = {Permission.ALBUM_UPDATE, Permission.ALBUM_ASSET_CREATE, Permission.ALBUM_ASSET_DELETE}


class SqlAccessChecker:
    def __init__(self, session: Session):
        self.session = session

    def check(self, user_id: str, permission: Permission, ids: Iterable[str]) -> set[str]:
        """Return the subset of ``ids`` the user holds ``permission`` on."""
        ids = list(dict.fromkeys(ids))
        if not ids:
            return set()
        if permission == Permission.ALBUM_READ:
            return self._albums(user_id, ids, roles=None)
        if permission in OWNER_OR_EDITOR:
            return self._albums(user_id, ids, roles=[AlbumUserRole.EDITOR.value])
        if permission in OWNER_ONLY:
            return self._albums(user_id, ids, roles=[])
        if permission == Permission.ASSET_SHARE:
            return self._assets(user_id, ids, via_albums=True)
        if permission == Permission.ASSET_UPDATE:
            return self._assets(user_id, ids, via_albums=False)
        raise ValueError(f"Unknown permission: {permission}")

    def require(self, user_id: str, permission: Permission, ids: Iterable[str]) -> None:
        ids = set(ids)
        allowed = self.check(user_id, permission, ids)
        if allowed != ids:
            raise PermissionDeniedError(f"Not found or no {permission.value} access")

    @store_call
    def _albums(self, user_id: str, album_ids: list[str], roles: list[str] | None) -> set[str]:
        owned = set(self.session.exec(
            select(Album.id).where(col(Album.id).in_(album_ids), Album.owner_id == user_id)
        ).all())
        if roles == []:
            return owned
        query = select(AlbumUser.album_id).where(
            col(AlbumUser.album_id).in_(album_ids),
            AlbumUser.user_id == user_id,
        )
        if roles is not None:
            query = query.where(col(AlbumUser.role).in_(roles))
        return owned | set(self.session.exec(query).all())

    @store_call
    def _assets(self, user_id: str, asset_ids: list[str], via_albums: bool) -> set[str]:
        owned = set(self.session.exec(
            select(Asset.id).where(col(Asset.id).in_(asset_ids), Asset.owner_id == user_id)
        ).all())
        if not via_albums:
            return owned
        readable = select(Album.id).where(or_(
            Album.owner_id == user_id,
            col(Album.id).in_(select(AlbumUser.album_id).where(AlbumUser.user_id == user_id)),
        ))
        in_albums = set(self.session.exec(
            select(AlbumAsset.asset_id).where(
                col(AlbumAsset.asset_id).in_(asset_ids),
                col(AlbumAsset.album_id).in_(readable),
            )
        ).all())
        return owned | in_albums
