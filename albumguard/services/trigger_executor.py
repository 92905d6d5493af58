"""Applies trigger decisions against the album and asset stores."""

import logging
from dataclasses import dataclass

from albumguard.errors import ConflictAlreadyAbsent, StoreFailure
from albumguard.repositories.protocols import AlbumStore, AssetStore
from albumguard.services.trigger_engine import Decision

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    visibility_updated: int = 0
    revoked: int = 0
    already_absent: int = 0


class TriggerExecutor:
    """The only place trigger decisions turn into writes.

    Visibility batches go first, one store call per target value, then
    revocations one edge at a time. A StoreFailure aborts the rest of the
    decision and propagates; what was already applied stays applied.
    """

    def __init__(self, albums: AlbumStore, assets: AssetStore):
        self._albums = albums
        self._assets = assets

    def execute(self, decision: Decision) -> ExecutionReport:
        report = ExecutionReport()
        if decision.is_empty:
            return report

        for value, asset_ids in decision.visibility_batches():
            try:
                report.visibility_updated += self._assets.bulk_set_visibility(asset_ids, value)
            except StoreFailure:
                logger.error("Visibility batch (%s, %d asset(s)) failed, aborting decision",
                             value.value, len(asset_ids))
                raise

        touched = []
        for edge in decision.revocations:
            try:
                self._albums.revoke_membership(edge.album_id, edge.asset_id)
            except ConflictAlreadyAbsent:
                logger.debug("Edge %s/%s already removed", edge.album_id, edge.asset_id)
                report.already_absent += 1
                continue
            except StoreFailure:
                logger.error("Revoking %s from album %s failed, aborting decision",
                             edge.asset_id, edge.album_id)
                raise
            report.revoked += 1
            touched.append(edge.album_id)

        if touched:
            self._albums.update_thumbnails(touched)

        logger.info(
            "Applied decision: %d visibility change(s), %d revocation(s), %d already absent",
            report.visibility_updated, report.revoked, report.already_absent,
        )
        return report
