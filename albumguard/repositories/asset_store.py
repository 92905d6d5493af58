"""SQLModel-backed asset store."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import update
from sqlmodel import Session, col, select

from albumguard.models.asset import Asset, AssetVisibility, TRIGGER_MANAGED_VISIBILITY
from albumguard.repositories.base import store_call

logger = logging.getLogger(__name__)


class SqlAssetStore:
    def __init__(self, session: Session):
        self.session = session

    @store_call
    def get(self, asset_id: str) -> Optional[Asset]:
        return self.session.get(Asset, asset_id)

    @store_call
    def bulk_set_visibility(self, asset_ids: Iterable[str], value: AssetVisibility) -> int:
        """Set a trigger-managed visibility in one conditional UPDATE.

        Rows whose visibility belongs to another subsystem (archive, locked,
        ...) do not match the WHERE clause and are left untouched.
        """
        asset_ids = list(asset_ids)
        if not asset_ids:
            return 0
        result = self.session.execute(
            update(Asset)
            .where(
                col(Asset.id).in_(asset_ids),
                col(Asset.visibility).in_([v.value for v in TRIGGER_MANAGED_VISIBILITY]),
                col(Asset.visibility) != value.value,
            )
            .values(visibility=value.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        logger.debug("Set %d/%d asset(s) to %s", result.rowcount, len(asset_ids), value.value)
        return result.rowcount

    @store_call
    def set_visibility(self, asset_ids: Iterable[str], value: AssetVisibility) -> int:
        """Unconditional visibility update for explicit user actions (archive, lock, ...)."""
        asset_ids = list(asset_ids)
        if not asset_ids:
            return 0
        result = self.session.execute(
            update(Asset)
            .where(col(Asset.id).in_(asset_ids))
            .values(visibility=value.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount

    @store_call
    def get_timeline(
        self,
        owner_id: str,
        visibility: AssetVisibility = AssetVisibility.TIMELINE,
        limit: int = 200,
    ) -> list[Asset]:
        return list(self.session.exec(
            select(Asset)
            .where(Asset.owner_id == owner_id, Asset.visibility == visibility.value)
            .order_by(col(Asset.file_created_at).desc(), col(Asset.created_at).desc())
            .limit(limit)
        ).all())
