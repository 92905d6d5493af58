"""Album membership mutations with per-id results."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from albumguard.models.album import Album
from albumguard.repositories.access import Permission
from albumguard.repositories.protocols import AccessChecker, AlbumStore

logger = logging.getLogger(__name__)


class BulkIdErrorReason(str, Enum):
    DUPLICATE = "duplicate"
    NO_PERMISSION = "no_permission"
    NOT_FOUND = "not_found"
    EXCLUSIVE = "exclusive"
    UNKNOWN = "unknown"


@dataclass
class BulkIdResult:
    id: str
    success: bool
    error: Optional[BulkIdErrorReason] = None


@dataclass
class MembershipDelta:
    album_id: str
    results: list[BulkIdResult] = field(default_factory=list)

    @property
    def changed_ids(self) -> list[str]:
        return [r.id for r in self.results if r.success]


class MembershipMutator:
    def __init__(self, albums: AlbumStore, access: AccessChecker):
        self._albums = albums
        self._access = access

    def add(self, user_id: str, album: Album, asset_ids: Sequence[str]) -> MembershipDelta:
        """Add assets to an album. Existing edges and repeated ids are duplicates."""
        delta = MembershipDelta(album.id)
        unique = list(dict.fromkeys(asset_ids))
        existing = self._albums.get_asset_ids(album.id, unique)
        allowed = self._access.check(user_id, Permission.ASSET_SHARE, unique)

        errors: dict[str, BulkIdErrorReason] = {}
        for asset_id in unique:
            if asset_id in existing:
                errors[asset_id] = BulkIdErrorReason.DUPLICATE
            elif asset_id not in allowed:
                errors[asset_id] = BulkIdErrorReason.NO_PERMISSION
            elif not album.is_exclusive and self._held_by_exclusive(album.id, asset_id):
                errors[asset_id] = BulkIdErrorReason.EXCLUSIVE

        to_add = [a for a in unique if a not in errors]
        added = self._albums.add_membership(album.id, to_add) if to_add else set()

        seen = set()
        for asset_id in asset_ids:
            if asset_id in seen:
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.DUPLICATE))
                continue
            seen.add(asset_id)
            if asset_id in errors:
                delta.results.append(BulkIdResult(asset_id, False, errors[asset_id]))
            elif asset_id in added:
                delta.results.append(BulkIdResult(asset_id, True))
            else:
                # added concurrently between the read and the insert
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.DUPLICATE))

        logger.debug("Album %s: %d of %d asset(s) added", album.id, len(added), len(asset_ids))
        return delta

    def remove(
        self,
        user_id: str,
        album: Album,
        asset_ids: Sequence[str],
        can_always_remove: bool = False,
    ) -> MembershipDelta:
        """Remove assets from an album. Absent edges are reported, not errors.

        Without ``can_always_remove`` (album owners have it), a user may
        only take out assets they can update.
        """
        delta = MembershipDelta(album.id)
        unique = list(dict.fromkeys(asset_ids))
        existing = self._albums.get_asset_ids(album.id, unique)
        allowed = set(unique) if can_always_remove else self._access.check(
            user_id, Permission.ASSET_UPDATE, unique
        )

        to_remove = [a for a in unique if a in existing and a in allowed]
        removed = self._albums.remove_membership(album.id, to_remove) if to_remove else set()

        seen = set()
        for asset_id in asset_ids:
            if asset_id in seen:
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.DUPLICATE))
                continue
            seen.add(asset_id)
            if asset_id not in existing:
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.NOT_FOUND))
            elif asset_id not in allowed:
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.NO_PERMISSION))
            elif asset_id in removed:
                delta.results.append(BulkIdResult(asset_id, True))
            else:
                delta.results.append(BulkIdResult(asset_id, False, BulkIdErrorReason.NOT_FOUND))

        logger.debug("Album %s: %d of %d asset(s) removed", album.id, len(removed), len(asset_ids))
        return delta

    def _held_by_exclusive(self, album_id: str, asset_id: str) -> bool:
        # any owner's exclusive album counts, not only the ones the user can see
        albums = self._albums.get_flagged_albums_for_assets([asset_id]).get(asset_id, ())
        return any(a.is_exclusive and a.album_id != album_id for a in albums)
