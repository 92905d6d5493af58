"""SQLModel-backed album store: albums, membership edges and sharing rows."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, col, func, select

from albumguard.errors import ConflictAlreadyAbsent, NotFoundError
from albumguard.models.album import Album, AlbumAsset, AlbumUser
from albumguard.models.asset import Asset
from albumguard.repositories.base import store_call
from albumguard.services.trigger_engine import AlbumFlags

logger = logging.getLogger(__name__)


@dataclass
class AlbumMetadata:
    album_id: str
    asset_count: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SqlAlbumStore:
    def __init__(self, session: Session):
        self.session = session

    # --- Albums ---

    @store_call
    def get(self, album_id: str) -> Optional[Album]:
        return self.session.get(Album, album_id)

    @store_call
    def create(self, album: Album, album_users: Iterable[tuple[str, str]] = ()) -> Album:
        """Insert an album and its shared users in one commit.

        Members are added afterwards through ``add_membership`` so that
        they pass the same checks and triggers as any other addition.
        """
        self.session.add(album)
        self.session.flush()
        for user_id, role in album_users:
            self.session.add(AlbumUser(album_id=album.id, user_id=user_id, role=role))
        self.session.commit()
        self.session.refresh(album)
        return album

    @store_call
    def update(self, album_id: str, changes: dict) -> Album:
        """Apply a field patch, flags included. ``None`` values are skipped."""
        album = self.session.get(Album, album_id)
        if album is None:
            raise NotFoundError(f"Album {album_id} not found")
        for key, value in changes.items():
            if value is not None:
                setattr(album, key, value)
        album.updated_at = datetime.now(timezone.utc)
        self.session.add(album)
        self.session.commit()
        self.session.refresh(album)
        return album

    @store_call
    def get_flags(self, album_id: str) -> AlbumFlags:
        album = self.session.get(Album, album_id)
        if album is None:
            raise NotFoundError(f"Album {album_id} not found")
        return AlbumFlags.from_album(album)

    @store_call
    def delete(self, album_id: str) -> None:
        self.session.execute(delete(AlbumAsset).where(col(AlbumAsset.album_id) == album_id))
        self.session.execute(delete(AlbumUser).where(col(AlbumUser.album_id) == album_id))
        album = self.session.get(Album, album_id)
        if album is not None:
            self.session.delete(album)
        self.session.commit()

    @store_call
    def get_owned(self, user_id: str) -> list[Album]:
        return list(self.session.exec(
            select(Album).where(Album.owner_id == user_id).order_by(col(Album.created_at).desc())
        ).all())

    @store_call
    def get_shared(self, user_id: str) -> list[Album]:
        """Owned albums shared with someone, plus albums shared with the user."""
        shared_ids = select(AlbumUser.album_id).where(AlbumUser.user_id == user_id)
        owned_and_shared = select(AlbumUser.album_id).join(
            Album, col(Album.id) == col(AlbumUser.album_id)
        ).where(Album.owner_id == user_id)
        return list(self.session.exec(
            select(Album).where(or_(
                col(Album.id).in_(shared_ids),
                col(Album.id).in_(owned_and_shared),
            )).order_by(col(Album.created_at).desc())
        ).all())

    @store_call
    def get_not_shared(self, user_id: str) -> list[Album]:
        return list(self.session.exec(
            select(Album).where(
                Album.owner_id == user_id,
                col(Album.id).not_in(select(AlbumUser.album_id)),
            ).order_by(col(Album.created_at).desc())
        ).all())

    @store_call
    def get_metadata_for_ids(self, album_ids: Iterable[str]) -> dict[str, AlbumMetadata]:
        album_ids = list(album_ids)
        if not album_ids:
            return {}
        rows = self.session.exec(
            select(
                AlbumAsset.album_id,
                func.count(col(AlbumAsset.asset_id)),
                func.min(Asset.file_created_at),
                func.max(Asset.file_created_at),
            )
            .join(Asset, col(Asset.id) == col(AlbumAsset.asset_id))
            .where(col(AlbumAsset.album_id).in_(album_ids))
            .group_by(AlbumAsset.album_id)
        ).all()
        return {
            album_id: AlbumMetadata(album_id, count, start, end)
            for album_id, count, start, end in rows
        }

    @store_call
    def update_thumbnails(self, album_ids: Iterable[str]) -> None:
        """Point each thumbnail at a current member, or clear it when the album is empty."""
        changed = False
        for album_id in dict.fromkeys(album_ids):
            album = self.session.get(Album, album_id)
            if album is None:
                continue
            if album.thumbnail_asset_id and self._is_member(album_id, album.thumbnail_asset_id):
                continue
            first = self.session.exec(
                select(AlbumAsset.asset_id)
                .where(AlbumAsset.album_id == album_id)
                .order_by(col(AlbumAsset.added_at).asc(), col(AlbumAsset.id).asc())
            ).first()
            if album.thumbnail_asset_id != first:
                logger.debug("Album %s thumbnail %s -> %s", album_id, album.thumbnail_asset_id, first)
                album.thumbnail_asset_id = first
                self.session.add(album)
                changed = True
        if changed:
            self.session.commit()

    # --- Membership ---

    def _is_member(self, album_id: str, asset_id: str) -> bool:
        return self.session.exec(
            select(AlbumAsset.id).where(
                AlbumAsset.album_id == album_id,
                AlbumAsset.asset_id == asset_id,
            )
        ).first() is not None

    @store_call
    def get_asset_ids(self, album_id: str, asset_ids: Optional[Iterable[str]] = None) -> set[str]:
        query = select(AlbumAsset.asset_id).where(AlbumAsset.album_id == album_id)
        if asset_ids is not None:
            asset_ids = list(asset_ids)
            if not asset_ids:
                return set()
            query = query.where(col(AlbumAsset.asset_id).in_(asset_ids))
        return set(self.session.exec(query).all())

    @store_call
    def add_membership(self, album_id: str, asset_ids: Iterable[str]) -> set[str]:
        asset_ids = list(dict.fromkeys(asset_ids))
        if not asset_ids:
            return set()
        existing = self.get_asset_ids(album_id, asset_ids)
        now = datetime.now(timezone.utc)
        stmt = sqlite_insert(AlbumAsset).values([
            {"album_id": album_id, "asset_id": asset_id, "added_at": now}
            for asset_id in asset_ids
        ]).on_conflict_do_nothing(index_elements=["album_id", "asset_id"])
        self.session.execute(stmt)
        self.session.commit()
        return set(asset_ids) - existing

    @store_call
    def remove_membership(self, album_id: str, asset_ids: Iterable[str]) -> set[str]:
        existing = self.get_asset_ids(album_id, asset_ids)
        if not existing:
            return set()
        self.session.execute(
            delete(AlbumAsset).where(
                col(AlbumAsset.album_id) == album_id,
                col(AlbumAsset.asset_id).in_(list(existing)),
            )
        )
        self.session.commit()
        return existing

    @store_call
    def revoke_membership(self, album_id: str, asset_id: str) -> None:
        result = self.session.execute(
            delete(AlbumAsset).where(
                col(AlbumAsset.album_id) == album_id,
                col(AlbumAsset.asset_id) == asset_id,
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        if result.rowcount == 0:
            raise ConflictAlreadyAbsent(f"{asset_id} is no longer in album {album_id}")

    @store_call
    def get_flagged_albums_for_assets(self, asset_ids: Iterable[str]) -> dict[str, list[AlbumFlags]]:
        """Hiding or exclusive albums holding each asset, whoever owns them."""
        asset_ids = list(dict.fromkeys(asset_ids))
        if not asset_ids:
            return {}
        rows = self.session.exec(
            select(AlbumAsset.asset_id, Album)
            .join(Album, col(Album.id) == col(AlbumAsset.album_id))
            .where(
                col(AlbumAsset.asset_id).in_(asset_ids),
                or_(Album.hide_from_timeline == True, Album.is_exclusive == True),  # noqa: E712
            )
        ).all()
        flagged: dict[str, list[AlbumFlags]] = {}
        for asset_id, album in rows:
            flagged.setdefault(asset_id, []).append(AlbumFlags.from_album(album))
        return flagged

    def get_asset_ids_in_hiding_albums(self, asset_ids: Iterable[str]) -> set[str]:
        """Which of ``asset_ids`` belong to at least one hiding album, whoever owns it."""
        return {
            asset_id
            for asset_id, albums in self.get_flagged_albums_for_assets(asset_ids).items()
            if any(a.hide_from_timeline for a in albums)
        }

    @store_call
    def get_member_albums_for_asset(self, user_id: str, asset_id: str) -> list[Album]:
        if self.session.get(Asset, asset_id) is None:
            raise NotFoundError(f"Asset {asset_id} not found")
        shared_ids = select(AlbumUser.album_id).where(AlbumUser.user_id == user_id)
        return list(self.session.exec(
            select(Album)
            .join(AlbumAsset, col(AlbumAsset.album_id) == col(Album.id))
            .where(
                AlbumAsset.asset_id == asset_id,
                or_(Album.owner_id == user_id, col(Album.id).in_(shared_ids)),
            )
        ).all())

    # --- Sharing ---

    @store_call
    def get_album_users(self, album_id: str) -> list[AlbumUser]:
        return list(self.session.exec(
            select(AlbumUser).where(AlbumUser.album_id == album_id).order_by(col(AlbumUser.id))
        ).all())

    @store_call
    def add_user(self, album_id: str, user_id: str, role: str) -> AlbumUser:
        album_user = AlbumUser(album_id=album_id, user_id=user_id, role=role)
        self.session.add(album_user)
        self.session.commit()
        self.session.refresh(album_user)
        return album_user

    @store_call
    def remove_user(self, album_id: str, user_id: str) -> None:
        self.session.execute(
            delete(AlbumUser).where(
                col(AlbumUser.album_id) == album_id,
                col(AlbumUser.user_id) == user_id,
            )
        )
        self.session.commit()

    @store_call
    def update_user(self, album_id: str, user_id: str, role: str) -> AlbumUser:
        album_user = self.session.exec(
            select(AlbumUser).where(AlbumUser.album_id == album_id, AlbumUser.user_id == user_id)
        ).first()
        if album_user is None:
            raise NotFoundError("Album not shared with user")
        album_user.role = role
        self.session.add(album_user)
        self.session.commit()
        self.session.refresh(album_user)
        return album_user
