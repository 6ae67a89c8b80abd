import pytest

from bucketarr.pipeline.models import Decision
from bucketarr.pipeline.reconcile import MatchOptions, decide, find_match, needs_probe
from bucketarr.store.index import BucketSnapshot

BASE = "My_Video_[abc123]"


@pytest.mark.parametrize(
    "stored, ext, size, reupload, full_key, expected",
    [
        # prefix mode
        ({}, "mp4", 100, False, False, Decision.UPLOAD),
        ({f"{BASE}.mp4": 100}, "mp4", 100, False, False, Decision.SKIP),
        ({f"{BASE}.webm": 5}, "mp4", 100, False, False, Decision.SKIP),
        ({f"{BASE}.mp4": 100}, "mp4", 100, True, False, Decision.SKIP),
        ({f"{BASE}.mp4": 90}, "mp4", 100, True, False, Decision.REUPLOAD),
        ({f"{BASE}.mp4": 90}, "mp4", 0, True, False, Decision.SKIP),
        # full-key mode
        ({f"{BASE}.webm": 5}, "mp4", 100, False, True, Decision.UPLOAD),
        ({f"{BASE}.mp4": 5}, "mp4", 100, False, True, Decision.SKIP),
        ({f"{BASE}.mp4": 5}, "mp4", 100, True, True, Decision.REUPLOAD),
        ({f"{BASE}.mp4": 100}, "mp4", 100, True, True, Decision.SKIP),
    ],
)
def test_decision_table(stored, ext, size, reupload, full_key, expected):
    snap = BucketSnapshot.from_sizes(stored)
    assert decide(snap, BASE, ext, size, reupload, full_key) == expected


def test_prefix_mode_matches_sibling_keys_with_same_stem():
    snap = BucketSnapshot.from_sizes({f"{BASE}.en.vtt": 1})
    assert decide(snap, BASE, None, 0, False, False) == Decision.SKIP


def test_prefix_mode_compares_size_against_exact_key_when_present():
    snap = BucketSnapshot.from_sizes({f"{BASE}.en.vtt": 1, f"{BASE}.mp4": 100})
    match = find_match(snap, BASE, "mp4", check_full_key=False)
    assert match is not None
    assert match.key == f"{BASE}.mp4"
    assert decide(snap, BASE, "mp4", 100, True, False) == Decision.SKIP


def test_prefix_mode_does_not_match_unrelated_keys():
    snap = BucketSnapshot.from_sizes({"Other_[zzz].mp4": 1, "My_Video.mp4": 1})
    assert decide(snap, BASE, "mp4", 1, False, False) == Decision.UPLOAD


def test_full_key_mode_requires_extension():
    snap = BucketSnapshot.from_sizes({})
    with pytest.raises(ValueError):
        decide(snap, BASE, None, 0, False, True)


def test_probe_skipped_only_when_prefix_hit_decides_skip():
    hit = BucketSnapshot.from_sizes({f"{BASE}.mp4": 1})
    miss = BucketSnapshot.from_sizes({})

    assert needs_probe(hit, BASE, MatchOptions()) is False
    assert needs_probe(miss, BASE, MatchOptions()) is True
    assert needs_probe(hit, BASE, MatchOptions(reupload_on_size_diff=True)) is True
    assert needs_probe(hit, BASE, MatchOptions(check_full_key=True)) is True
