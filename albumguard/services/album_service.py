"""Album operations and their trigger sequencing.

Every mutating operation runs the same pipeline:

1. mutate membership or flags through the album store
2. gather the memberships the trigger needs (fresh reads, never cached)
3. compute a ``Decision`` with the trigger engine
4. apply it with ``TriggerExecutor``
5. emit album events to the owner and shared users, minus the actor

Steps 1-4 run under the per-asset lock when one is configured. Without
it, two requests racing on the same asset can leave its visibility stale
until the next operation that touches it re-derives it.
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from albumguard.errors import InvalidRequestError, NotFoundError
from albumguard.models.album import Album, AlbumUser
from albumguard.repositories.access import Permission
from albumguard.repositories.album_store import AlbumMetadata
from albumguard.repositories.protocols import AccessChecker, AlbumStore, AssetStore, UserStore
from albumguard.services.events import ALBUM_INVITE, ALBUM_UPDATE, EventBus
from albumguard.services.membership import (
    BulkIdErrorReason,
    BulkIdResult,
    MembershipDelta,
    MembershipMutator,
)
from albumguard.services.trigger_engine import (
    AlbumFlags,
    needs_other_albums_on_add,
    needs_other_albums_on_flags_change,
    needs_other_albums_on_remove,
    on_assets_added,
    on_assets_removed,
    on_flags_changed,
)
from albumguard.services.trigger_executor import ExecutionReport, TriggerExecutor
from albumguard.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


@dataclass
class AlbumDetail:
    album: Album
    metadata: AlbumMetadata
    album_users: list[AlbumUser] = field(default_factory=list)
    asset_ids: Optional[list[str]] = None


@dataclass
class AlbumsAddAssetsResult:
    success: bool = False
    error: Optional[BulkIdErrorReason] = BulkIdErrorReason.DUPLICATE


class AlbumService:
    def __init__(
        self,
        albums: AlbumStore,
        assets: AssetStore,
        access: AccessChecker,
        users: UserStore,
        events: EventBus,
        locks: Optional[KeyedLock] = None,
    ):
        self._albums = albums
        self._access = access
        self._users = users
        self._events = events
        self._locks = locks
        self._mutator = MembershipMutator(albums, access)
        self._executor = TriggerExecutor(albums, assets)

    # --- Reads ---

    def get_statistics(self, user_id: str) -> dict[str, int]:
        return {
            "owned": len(self._albums.get_owned(user_id)),
            "shared": len(self._albums.get_shared(user_id)),
            "not_shared": len(self._albums.get_not_shared(user_id)),
        }

    def get_all(
        self,
        user_id: str,
        asset_id: Optional[str] = None,
        shared: Optional[bool] = None,
    ) -> list[AlbumDetail]:
        if asset_id:
            try:
                albums = self._albums.get_member_albums_for_asset(user_id, asset_id)
            except NotFoundError:
                albums = []
        elif shared is True:
            albums = self._albums.get_shared(user_id)
        elif shared is False:
            albums = self._albums.get_not_shared(user_id)
        else:
            albums = self._albums.get_owned(user_id)

        metadata = self._albums.get_metadata_for_ids([a.id for a in albums])
        return [
            AlbumDetail(
                album=album,
                metadata=metadata.get(album.id) or AlbumMetadata(album.id),
                album_users=self._albums.get_album_users(album.id),
            )
            for album in albums
        ]

    def get(self, user_id: str, album_id: str, without_assets: bool = False) -> AlbumDetail:
        album = self._find_or_fail(album_id)
        self._access.require(user_id, Permission.ALBUM_READ, [album_id])
        return self._detail(album, with_assets=not without_assets)

    # --- Album lifecycle ---

    def create(
        self,
        user_id: str,
        name: str,
        description: str = "",
        asset_ids: Sequence[str] = (),
        album_users: Sequence[tuple[str, str]] = (),
        hide_from_timeline: bool = False,
        is_exclusive: bool = False,
    ) -> AlbumDetail:
        """Create an album, run add triggers for its first assets, invite its users."""
        self._validate_new_users([uid for uid, _ in album_users], owner_id=user_id)

        allowed = self._access.check(user_id, Permission.ASSET_SHARE, asset_ids)
        asset_ids = [a for a in dict.fromkeys(asset_ids) if a in allowed]

        album = self._albums.create(
            Album(
                owner_id=user_id,
                name=name,
                description=description or "",
                hide_from_timeline=hide_from_timeline,
                is_exclusive=is_exclusive,
            ),
            album_users=album_users,
        )
        logger.info("Album %s created by %s (hide=%s, exclusive=%s)",
                    album.id, user_id, hide_from_timeline, is_exclusive)

        if asset_ids:
            with self._hold(asset_ids):
                self._add_to_album(user_id, album, asset_ids)

        for uid, _ in album_users:
            self._events.emit(ALBUM_INVITE, {"id": album.id, "user_id": uid})

        return self._detail(album, with_assets=True)

    def update(self, user_id: str, album_id: str, changes: dict) -> AlbumDetail:
        """Patch album fields. Flag changes re-derive the state of every member."""
        album = self._find_or_fail(album_id)
        self._access.require(user_id, Permission.ALBUM_UPDATE, [album_id])

        thumbnail = changes.get("thumbnail_asset_id")
        if thumbnail and not self._albums.get_asset_ids(album_id, [thumbnail]):
            raise InvalidRequestError("Invalid album thumbnail")

        old = self._albums.get_flags(album_id)
        hide = changes.get("hide_from_timeline")
        exclusive = changes.get("is_exclusive")
        flags_changed = (
            (hide is not None and hide != old.hide_from_timeline)
            or (exclusive is not None and exclusive != old.is_exclusive)
        )
        if not flags_changed:
            album = self._albums.update(album_id, changes)
            return self._detail(album, with_assets=False)

        with self._hold(self._albums.get_asset_ids(album_id)):
            album = self._albums.update(album_id, changes)
            new = AlbumFlags.from_album(album)
            members = sorted(self._albums.get_asset_ids(album_id))
            other_albums, flagged_albums = (
                self._memberships(user_id, members)
                if needs_other_albums_on_flags_change(old, new) else ({}, {})
            )
            logger.info("Album %s flags changed: %s -> %s (%d member(s))", album_id, old, new, len(members))
            self._executor.execute(on_flags_changed(old, new, members, other_albums, flagged_albums))

        return self._detail(album, with_assets=False)

    def delete(self, user_id: str, album_id: str) -> None:
        """Delete an album. Its members go through the removal triggers first."""
        self._find_or_fail(album_id)
        self._access.require(user_id, Permission.ALBUM_DELETE, [album_id])

        flags = self._albums.get_flags(album_id)
        members = self._albums.get_asset_ids(album_id)
        with self._hold(members):
            removed = self._albums.remove_membership(album_id, members)
            if removed:
                self._apply_removed(user_id, flags, sorted(removed))
            self._albums.delete(album_id)
        logger.info("Album %s deleted by %s (%d member(s) released)", album_id, user_id, len(members))

    # --- Membership ---

    def add_assets(self, user_id: str, album_id: str, asset_ids: Sequence[str]) -> list[BulkIdResult]:
        album = self._find_or_fail(album_id)
        self._access.require(user_id, Permission.ALBUM_ASSET_CREATE, [album_id])

        with self._hold(asset_ids):
            delta = self._add_to_album(user_id, album, asset_ids)

        if delta.changed_ids:
            self._notify_update(album, user_id)
        return delta.results

    def add_assets_to_albums(
        self,
        user_id: str,
        album_ids: Sequence[str],
        asset_ids: Sequence[str],
    ) -> AlbumsAddAssetsResult:
        result = AlbumsAddAssetsResult()

        allowed_albums = self._access.check(user_id, Permission.ALBUM_ASSET_CREATE, album_ids)
        if not allowed_albums:
            result.error = BulkIdErrorReason.NO_PERMISSION
            return result

        allowed_assets = self._access.check(user_id, Permission.ASSET_SHARE, asset_ids)
        if not allowed_assets:
            result.error = BulkIdErrorReason.NO_PERMISSION
            return result

        asset_ids = [a for a in dict.fromkeys(asset_ids) if a in allowed_assets]
        updated: list[Album] = []
        with self._hold(asset_ids):
            for album_id in dict.fromkeys(album_ids):
                if album_id not in allowed_albums:
                    continue
                album = self._find_or_fail(album_id)
                delta = self._add_to_album(user_id, album, asset_ids)
                if delta.changed_ids:
                    result.success = True
                    result.error = None
                    updated.append(album)

        for album in updated:
            self._notify_update(album, user_id)
        return result

    def remove_assets(self, user_id: str, album_id: str, asset_ids: Sequence[str]) -> list[BulkIdResult]:
        self._access.require(user_id, Permission.ALBUM_ASSET_DELETE, [album_id])
        album = self._find_or_fail(album_id)
        flags = AlbumFlags.from_album(album)
        thumbnail = album.thumbnail_asset_id
        can_always_remove = bool(self._access.check(user_id, Permission.ALBUM_DELETE, [album_id]))

        with self._hold(asset_ids):
            delta = self._mutator.remove(user_id, album, asset_ids, can_always_remove=can_always_remove)
            if delta.changed_ids:
                self._apply_removed(user_id, flags, delta.changed_ids)

        if thumbnail and thumbnail in delta.changed_ids:
            self._albums.update_thumbnails([album_id])
        return delta.results

    # --- Sharing ---

    def add_users(self, user_id: str, album_id: str, album_users: Sequence[tuple[str, str]]) -> AlbumDetail:
        self._access.require(user_id, Permission.ALBUM_SHARE, [album_id])
        album = self._find_or_fail(album_id)

        current = {u.user_id for u in self._albums.get_album_users(album_id)}
        for uid, _ in album_users:
            if uid in current:
                raise InvalidRequestError("User already added")
        self._validate_new_users([uid for uid, _ in album_users], owner_id=album.owner_id)

        for uid, role in album_users:
            self._albums.add_user(album_id, uid, role)
            self._events.emit(ALBUM_INVITE, {"id": album_id, "user_id": uid})

        return self._detail(self._find_or_fail(album_id), with_assets=False)

    def remove_user(self, user_id: str, album_id: str, target_id: str) -> None:
        if target_id == "me":
            target_id = user_id

        album = self._find_or_fail(album_id)
        if album.owner_id == target_id:
            raise InvalidRequestError("Cannot remove album owner")

        current = {u.user_id for u in self._albums.get_album_users(album_id)}
        if target_id not in current:
            raise InvalidRequestError("Album not shared with user")

        # anyone may leave an album; removing others needs share rights
        if user_id != target_id:
            self._access.require(user_id, Permission.ALBUM_SHARE, [album_id])

        self._albums.remove_user(album_id, target_id)

    def update_user(self, user_id: str, album_id: str, target_id: str, role: str) -> None:
        self._find_or_fail(album_id)
        self._access.require(user_id, Permission.ALBUM_SHARE, [album_id])
        self._albums.update_user(album_id, target_id, role)

    # --- Internals ---

    def _hold(self, asset_ids: Iterable[str]):
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(asset_ids)

    def _find_or_fail(self, album_id: str) -> Album:
        album = self._albums.get(album_id)
        if album is None:
            raise NotFoundError("Album not found")
        return album

    def _detail(self, album: Album, with_assets: bool) -> AlbumDetail:
        metadata = self._albums.get_metadata_for_ids([album.id])
        return AlbumDetail(
            album=album,
            metadata=metadata.get(album.id) or AlbumMetadata(album.id),
            album_users=self._albums.get_album_users(album.id),
            asset_ids=sorted(self._albums.get_asset_ids(album.id)) if with_assets else None,
        )

    def _validate_new_users(self, user_ids: Sequence[str], owner_id: str) -> None:
        if len(set(user_ids)) != len(user_ids):
            raise InvalidRequestError("User already added")
        for uid in user_ids:
            if uid == owner_id:
                raise InvalidRequestError("Cannot share album with owner")
        missing = set(user_ids) - self._users.get_existing_ids(user_ids)
        if missing:
            raise InvalidRequestError("User not found")

    def _add_to_album(self, user_id: str, album: Album, asset_ids: Sequence[str]) -> MembershipDelta:
        flags = AlbumFlags.from_album(album)
        thumbnail = album.thumbnail_asset_id

        delta = self._mutator.add(user_id, album, asset_ids)
        added = delta.changed_ids
        if added:
            other_albums, flagged_albums = (
                self._memberships(user_id, added) if needs_other_albums_on_add(flags) else ({}, {})
            )
            self._executor.execute(on_assets_added(flags, added, other_albums, flagged_albums))
            self._albums.update(album.id, {"thumbnail_asset_id": thumbnail or added[0]})
        return delta

    def _apply_removed(self, user_id: str, flags: AlbumFlags, asset_ids: Sequence[str]) -> ExecutionReport:
        other_albums, flagged_albums = (
            self._memberships(user_id, asset_ids) if needs_other_albums_on_remove(flags) else ({}, {})
        )
        return self._executor.execute(on_assets_removed(flags, asset_ids, other_albums, flagged_albums))

    def _memberships(
        self,
        user_id: str,
        asset_ids: Sequence[str],
    ) -> tuple[dict[str, list[AlbumFlags]], dict[str, list[AlbumFlags]]]:
        """Albums the actor sees each asset in, plus every flagged album holding it.

        Exclusivity only evicts from the first set. Restoring ``timeline``
        consults both, so a hiding album the actor cannot see still counts.
        """
        return self._other_albums(user_id, asset_ids), self._albums.get_flagged_albums_for_assets(asset_ids)

    def _other_albums(self, user_id: str, asset_ids: Iterable[str]) -> dict[str, list[AlbumFlags]]:
        """Current album memberships per asset, skipping assets that no longer exist."""
        result = {}
        for asset_id in asset_ids:
            try:
                albums = self._albums.get_member_albums_for_asset(user_id, asset_id)
            except NotFoundError:
                logger.warning("Asset %s not found while gathering memberships, skipping", asset_id)
                continue
            result[asset_id] = [AlbumFlags.from_album(a) for a in albums]
        return result

    def _recipients(self, album: Album, actor_id: str) -> list[str]:
        user_ids = [u.user_id for u in self._albums.get_album_users(album.id)]
        user_ids.append(album.owner_id)
        return [uid for uid in dict.fromkeys(user_ids) if uid != actor_id]

    def _notify_update(self, album: Album, actor_id: str) -> None:
        for recipient_id in self._recipients(album, actor_id):
            self._events.emit(ALBUM_UPDATE, {"id": album.id, "recipient_id": recipient_id})
