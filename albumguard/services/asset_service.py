"""Explicit asset visibility changes made outside album triggers."""

import logging

from albumguard.errors import InvalidRequestError
from albumguard.models.asset import AssetVisibility
from albumguard.repositories.access import Permission
from albumguard.repositories.protocols import AccessChecker, AlbumStore, AssetStore

logger = logging.getLogger(__name__)


def set_visibility(
    user_id: str,
    asset_ids: list[str],
    value: AssetVisibility,
    assets: AssetStore,
    albums: AlbumStore,
    access: AccessChecker,
) -> int:
    """Set a user-chosen visibility on owned assets. Returns rows changed.

    Moving assets back to the timeline re-derives ``album-hidden`` for the
    ones that are still members of a hiding album.
    """
    if value == AssetVisibility.ALBUM_HIDDEN:
        raise InvalidRequestError("album-hidden is managed by album settings")

    access.require(user_id, Permission.ASSET_UPDATE, asset_ids)
    updated = assets.set_visibility(asset_ids, value)

    if value == AssetVisibility.TIMELINE:
        hidden = albums.get_asset_ids_in_hiding_albums(asset_ids)
        if hidden:
            assets.bulk_set_visibility(sorted(hidden), AssetVisibility.ALBUM_HIDDEN)
            logger.info("%d restored asset(s) still belong to a hiding album", len(hidden))

    return updated
