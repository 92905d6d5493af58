"""Album trigger decisions.

Pure decision logic for the two album modifiers:

- ``hide_from_timeline``: members of a hiding album carry the
  ``album-hidden`` visibility. An asset returns to ``timeline`` only when
  it leaves its last hiding album.
- ``is_exclusive``: a member of an exclusive album belongs to no other album.

Nothing here touches a store. Each entry point gets a snapshot of the
album flags and, where it needs one, the albums each affected asset
currently belongs to, and returns an inert ``Decision`` for
``TriggerExecutor`` to apply.
"""

from dataclasses import dataclass, field
from typing import Collection, Iterable, Mapping, Sequence

from albumguard.models.asset import AssetVisibility


@dataclass(frozen=True)
class AlbumFlags:
    """Snapshot of the album fields the triggers read."""
    album_id: str
    hide_from_timeline: bool = False
    is_exclusive: bool = False

    @classmethod
    def from_album(cls, album) -> "AlbumFlags":
        return cls(
            album_id=album.id,
            hide_from_timeline=bool(album.hide_from_timeline),
            is_exclusive=bool(album.is_exclusive),
        )


@dataclass(frozen=True)
class SetVisibility:
    asset_ids: tuple[str, ...]
    visibility: AssetVisibility


@dataclass(frozen=True)
class RevokeMembership:
    album_id: str
    asset_id: str


@dataclass
class Decision:
    """Visibility updates and membership revocations for one mutation."""
    visibility: list[SetVisibility] = field(default_factory=list)
    revocations: list[RevokeMembership] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.visibility and not self.revocations

    def set_visibility(self, asset_ids: Iterable[str], value: AssetVisibility) -> None:
        ids = tuple(dict.fromkeys(asset_ids))
        if ids:
            self.visibility.append(SetVisibility(ids, value))

    def revoke(self, album_id: str, asset_id: str) -> None:
        edge = RevokeMembership(album_id, asset_id)
        if edge not in self.revocations:
            self.revocations.append(edge)

    def visibility_batches(self) -> list[tuple[AssetVisibility, list[str]]]:
        """Group visibility updates by target value, first-seen order.

        An asset listed under two values keeps the later one.
        """
        latest: dict[str, AssetVisibility] = {}
        for op in self.visibility:
            for asset_id in op.asset_ids:
                latest.pop(asset_id, None)
                latest[asset_id] = op.visibility

        batches: dict[AssetVisibility, list[str]] = {}
        for op in self.visibility:
            batches.setdefault(op.visibility, [])
        for asset_id, value in latest.items():
            batches[value].append(asset_id)
        return [(value, ids) for value, ids in batches.items() if ids]


OtherAlbums = Mapping[str, Sequence[AlbumFlags]]


def _others(album_id: str, albums: Sequence[AlbumFlags] | None) -> list[AlbumFlags]:
    return [a for a in albums or () if a.album_id != album_id]


def _still_hidden(
    asset_id: str,
    leaving: Collection[str],
    other_albums: OtherAlbums,
    flagged_albums: OtherAlbums,
) -> bool:
    # any hiding album besides the ones being left keeps the asset hidden,
    # including hiding albums the acting user cannot see
    for albums in (other_albums.get(asset_id), flagged_albums.get(asset_id)):
        if any(a.hide_from_timeline and a.album_id not in leaving for a in albums or ()):
            return True
    return False


def _enforce_exclusive(
    album: AlbumFlags,
    asset_ids: Iterable[str],
    other_albums: OtherAlbums,
    flagged_albums: OtherAlbums,
    decision: Decision,
) -> None:
    restore = []
    for asset_id in asset_ids:
        evicted = _others(album.album_id, other_albums.get(asset_id))
        for other in evicted:
            decision.revoke(other.album_id, asset_id)
        # Eviction out of a hiding album into a non-hiding one makes the asset
        # visible again, unless a hiding album outside the evicted set holds it.
        if album.hide_from_timeline or not any(o.hide_from_timeline for o in evicted):
            continue
        leaving = {album.album_id, *(o.album_id for o in evicted)}
        if not _still_hidden(asset_id, leaving, {}, flagged_albums):
            restore.append(asset_id)
    decision.set_visibility(restore, AssetVisibility.TIMELINE)


def needs_other_albums_on_add(album: AlbumFlags) -> bool:
    return album.is_exclusive


def needs_other_albums_on_remove(album: AlbumFlags) -> bool:
    return album.hide_from_timeline


def needs_other_albums_on_flags_change(old: AlbumFlags, new: AlbumFlags) -> bool:
    hide_turned_off = old.hide_from_timeline and not new.hide_from_timeline
    exclusive_turned_on = new.is_exclusive and not old.is_exclusive
    return hide_turned_off or exclusive_turned_on


def on_assets_added(
    album: AlbumFlags,
    asset_ids: Sequence[str],
    other_albums: OtherAlbums | None = None,
    flagged_albums: OtherAlbums | None = None,
) -> Decision:
    """Decide what follows from ``asset_ids`` joining ``album``.

    ``other_albums`` maps each asset to the albums the acting user can see
    it in right now (the target album may be among them); those are the
    ones exclusivity evicts. ``flagged_albums`` maps each asset to every
    hiding or exclusive album holding it, whoever owns it. Both are only
    read for exclusive albums.
    """
    decision = Decision()
    if not asset_ids:
        return decision

    if album.hide_from_timeline:
        decision.set_visibility(asset_ids, AssetVisibility.ALBUM_HIDDEN)

    if album.is_exclusive:
        _enforce_exclusive(album, asset_ids, other_albums or {}, flagged_albums or {}, decision)

    return decision


def on_assets_removed(
    album: AlbumFlags,
    asset_ids: Sequence[str],
    other_albums: OtherAlbums | None = None,
    flagged_albums: OtherAlbums | None = None,
) -> Decision:
    """Decide what follows from ``asset_ids`` leaving ``album``.

    ``album`` holds the flags from before the removal. Exclusivity is a
    write-time rule and is never re-applied here.
    """
    decision = Decision()
    if not asset_ids or not album.hide_from_timeline:
        return decision

    other_albums = other_albums or {}
    flagged_albums = flagged_albums or {}
    decision.set_visibility(
        [a for a in asset_ids if not _still_hidden(a, {album.album_id}, other_albums, flagged_albums)],
        AssetVisibility.TIMELINE,
    )
    return decision


def on_flags_changed(
    old: AlbumFlags,
    new: AlbumFlags,
    member_asset_ids: Sequence[str],
    other_albums: OtherAlbums | None = None,
    flagged_albums: OtherAlbums | None = None,
) -> Decision:
    """Decide what follows from an album's flags changing from ``old`` to ``new``.

    Hide handling comes first, exclusivity second. The two touch disjoint
    state, but they are separate steps for the executor and not atomic
    together. Turning ``is_exclusive`` off decides nothing: evicted
    memberships are gone.
    """
    decision = Decision()
    if not member_asset_ids:
        return decision

    other_albums = other_albums or {}
    flagged_albums = flagged_albums or {}

    if old.hide_from_timeline != new.hide_from_timeline:
        if new.hide_from_timeline:
            decision.set_visibility(member_asset_ids, AssetVisibility.ALBUM_HIDDEN)
        else:
            decision.set_visibility(
                [a for a in member_asset_ids
                 if not _still_hidden(a, {new.album_id}, other_albums, flagged_albums)],
                AssetVisibility.TIMELINE,
            )

    if new.is_exclusive and not old.is_exclusive:
        _enforce_exclusive(new, member_asset_ids, other_albums, flagged_albums, decision)

    return decision
