"""TriggerExecutor against in-memory stores."""

import pytest

from albumguard.errors import ConflictAlreadyAbsent, StoreFailure
from albumguard.models.asset import AssetVisibility
from albumguard.services.trigger_engine import Decision
from albumguard.services.trigger_executor import TriggerExecutor


class FakeAssets:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def bulk_set_visibility(self, asset_ids, value):
        if value == self.fail_on:
            raise StoreFailure("disk full")
        self.calls.append((list(asset_ids), value))
        return len(asset_ids)


class FakeAlbums:
    def __init__(self, edges, fail_on=None):
        self.edges = set(edges)
        self.fail_on = fail_on
        self.revoked = []
        self.thumbnails = []

    def revoke_membership(self, album_id, asset_id):
        if (album_id, asset_id) == self.fail_on:
            raise StoreFailure("locked")
        if (album_id, asset_id) not in self.edges:
            raise ConflictAlreadyAbsent(f"{asset_id} not in {album_id}")
        self.edges.remove((album_id, asset_id))
        self.revoked.append((album_id, asset_id))

    def update_thumbnails(self, album_ids):
        self.thumbnails.append(list(album_ids))


def test_empty_decision_touches_nothing():
    assets, albums = FakeAssets(), FakeAlbums([])
    report = TriggerExecutor(albums, assets).execute(Decision())
    assert assets.calls == []
    assert albums.thumbnails == []
    assert report.visibility_updated == report.revoked == 0


def test_one_store_call_per_visibility_value():
    decision = Decision()
    decision.set_visibility(["a"], AssetVisibility.TIMELINE)
    decision.set_visibility(["b", "c"], AssetVisibility.ALBUM_HIDDEN)
    decision.set_visibility(["d"], AssetVisibility.TIMELINE)
    assets = FakeAssets()

    report = TriggerExecutor(FakeAlbums([]), assets).execute(decision)

    assert assets.calls == [
        (["a", "d"], AssetVisibility.TIMELINE),
        (["b", "c"], AssetVisibility.ALBUM_HIDDEN),
    ]
    assert report.visibility_updated == 4


def test_already_absent_edges_are_counted_and_skipped():
    decision = Decision()
    decision.revoke("alb_1", "a")
    decision.revoke("alb_2", "a")
    albums = FakeAlbums([("alb_2", "a")])

    report = TriggerExecutor(albums, FakeAssets()).execute(decision)

    assert albums.revoked == [("alb_2", "a")]
    assert report.revoked == 1
    assert report.already_absent == 1
    assert albums.thumbnails == [["alb_2"]]


def test_visibility_failure_aborts_before_revocations():
    decision = Decision()
    decision.set_visibility(["a"], AssetVisibility.TIMELINE)
    decision.revoke("alb_1", "a")
    albums = FakeAlbums([("alb_1", "a")])

    with pytest.raises(StoreFailure):
        TriggerExecutor(albums, FakeAssets(fail_on=AssetVisibility.TIMELINE)).execute(decision)

    assert albums.revoked == []
    assert ("alb_1", "a") in albums.edges


def test_revocation_failure_keeps_earlier_writes():
    decision = Decision()
    decision.set_visibility(["a", "b"], AssetVisibility.TIMELINE)
    decision.revoke("alb_1", "a")
    decision.revoke("alb_2", "b")
    decision.revoke("alb_3", "b")
    assets = FakeAssets()
    albums = FakeAlbums([("alb_1", "a"), ("alb_2", "b"), ("alb_3", "b")], fail_on=("alb_2", "b"))

    with pytest.raises(StoreFailure):
        TriggerExecutor(albums, assets).execute(decision)

    assert assets.calls == [(["a", "b"], AssetVisibility.TIMELINE)]
    assert albums.revoked == [("alb_1", "a")]
    assert ("alb_3", "b") in albums.edges
