"""Explicit visibility changes and their interplay with hiding albums."""

import pytest

from albumguard.errors import InvalidRequestError, PermissionDeniedError
from albumguard.models import AssetVisibility
from albumguard.repositories import SqlAccessChecker, SqlAlbumStore, SqlAssetStore
from albumguard.services import asset_service

from conftest import auth_headers, visibility_of

API = "/api/v1"


@pytest.fixture
def alice(make_user):
    return make_user("alice")


def _set(session, user, ids, value):
    return asset_service.set_visibility(
        user.id, ids, value,
        assets=SqlAssetStore(session),
        albums=SqlAlbumStore(session),
        access=SqlAccessChecker(session),
    )


def test_archive_then_restore_inside_hiding_album(service, session, alice, make_asset):
    asset = make_asset(alice)
    service.create(alice.id, "Hidden", asset_ids=[asset.id], hide_from_timeline=True)

    _set(session, alice, [asset.id], AssetVisibility.ARCHIVE)
    assert visibility_of(session, asset.id) == AssetVisibility.ARCHIVE

    _set(session, alice, [asset.id], AssetVisibility.TIMELINE)
    assert visibility_of(session, asset.id) == AssetVisibility.ALBUM_HIDDEN


def test_restore_outside_hiding_album_goes_to_timeline(session, alice, make_asset):
    asset = make_asset(alice, visibility=AssetVisibility.ARCHIVE)

    assert _set(session, alice, [asset.id], AssetVisibility.TIMELINE) == 1
    assert visibility_of(session, asset.id) == AssetVisibility.TIMELINE


def test_album_hidden_cannot_be_set_directly(session, alice, make_asset):
    asset = make_asset(alice)
    with pytest.raises(InvalidRequestError):
        _set(session, alice, [asset.id], AssetVisibility.ALBUM_HIDDEN)
    assert visibility_of(session, asset.id) == AssetVisibility.TIMELINE


def test_only_owner_sets_visibility(session, alice, make_user, make_asset):
    asset = make_asset(make_user("bob"))
    with pytest.raises(PermissionDeniedError):
        _set(session, alice, [asset.id], AssetVisibility.ARCHIVE)


def test_put_assets_endpoint(client, session, alice, make_user, make_asset):
    asset = make_asset(alice)
    headers = auth_headers(alice)

    resp = client.put(f"{API}/assets", json={"ids": [asset.id], "visibility": "archive"}, headers=headers)
    assert resp.json() == {"updated": 1}
    archived = client.get(f"{API}/assets", params={"visibility": "archive"}, headers=headers).json()
    assert [a["id"] for a in archived["assets"]] == [asset.id]

    resp = client.put(f"{API}/assets", json={"ids": [asset.id], "visibility": "album-hidden"}, headers=headers)
    assert resp.status_code == 400
    resp = client.put(f"{API}/assets", json={"ids": [asset.id], "visibility": "bogus"}, headers=headers)
    assert resp.status_code == 400

    other = make_asset(make_user("bob"))
    resp = client.put(f"{API}/assets", json={"ids": [other.id], "visibility": "archive"}, headers=headers)
    assert resp.status_code == 403
    assert visibility_of(session, other.id) == AssetVisibility.TIMELINE


def test_get_asset_requires_access(client, alice, make_user, make_asset):
    mine, theirs = make_asset(alice), make_asset(make_user("bob"))
    headers = auth_headers(alice)

    assert client.get(f"{API}/assets/{mine.id}", headers=headers).json()["visibility"] == "timeline"
    assert client.get(f"{API}/assets/{theirs.id}", headers=headers).status_code == 404
