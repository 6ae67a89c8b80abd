from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class WorkItem:
    source_url: str
    title: str
    base_key: str  # "{title} [{id}]", filename-restricted

    def object_key(self, extension: str) -> str:
        return f"{self.base_key}.{extension}"


@dataclass(frozen=True)
class ItemMetadata:
    extension: str
    expected_size: int = 0  # 0 means unknown


class Decision(str, Enum):
    SKIP = "skip"
    UPLOAD = "upload"
    REUPLOAD = "reupload"


class Outcome(str, Enum):
    SKIPPED = "skipped"
    UPLOADED = "uploaded"
    REUPLOADED = "reuploaded"
    PLANNED = "planned"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemResult:
    item: WorkItem
    outcome: Outcome
    object_key: Optional[str] = None
    bytes_sent: int = 0
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED
