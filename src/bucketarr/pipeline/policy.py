from __future__ import annotations

from typing import Dict, Protocol

from bucketarr.pipeline.models import ItemResult


class FailurePolicy(Protocol):
    """
    Decides whether an item failure ends the batch.
    """

    name: str

    def should_stop(self, result: ItemResult) -> bool: ...


class FailFast:
    name = "fail-fast"

    def should_stop(self, result: ItemResult) -> bool:
        return result.failed


class KeepGoing:
    name = "keep-going"

    def should_stop(self, result: ItemResult) -> bool:
        return False


_POLICIES: Dict[str, FailurePolicy] = {
    FailFast.name: FailFast(),
    KeepGoing.name: KeepGoing(),
}


def get_policy(name: str) -> FailurePolicy:
    key = (name or "").strip().lower()
    if key not in _POLICIES:
        raise ValueError(f"Unknown failure policy: {name}")
    return _POLICIES[key]
