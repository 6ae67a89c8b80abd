from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from bucketarr.branding import BUCKETARR_DIVIDER
from bucketarr.env import DEFAULT_FORMAT
from bucketarr.errors import (
    BucketMissing,
    ConfigurationError,
    EnumerationFailed,
    ItemError,
    StoreUnavailable,
)
from bucketarr.extractor.enumerate import enumerate_items
from bucketarr.extractor.probe import probe
from bucketarr.extractor.ytdlp import YtDlp
from bucketarr.logger import get_logger
from bucketarr.pipeline.models import Decision, ItemMetadata, ItemResult, Outcome, WorkItem
from bucketarr.pipeline.policy import FailFast, FailurePolicy
from bucketarr.pipeline.reconcile import MatchOptions, decide, needs_probe
from bucketarr.pipeline.run_state import CancellationToken, RunStage, RunState, RunStatus
from bucketarr.pipeline.transfer import StreamingTransfer
from bucketarr.store.client import ObjectStore
from bucketarr.store.index import BucketSnapshot, snapshot

log = get_logger(__name__)

SHUTDOWN_REASON = "shutdown"


@dataclass(frozen=True)
class ArchiveOptions:
    source_url: str
    format_selector: str = DEFAULT_FORMAT
    create_bucket: bool = False
    match: MatchOptions = field(default_factory=MatchOptions)
    dry_run: bool = False


@dataclass(frozen=True)
class ArchiveOutcome:
    status: RunStatus
    results: list[ItemResult]
    reason: Optional[str] = None

    def counts(self) -> dict[Outcome, int]:
        c = Counter(r.outcome for r in self.results)
        return {o: c.get(o, 0) for o in Outcome}

    @property
    def drained(self) -> list[ItemResult]:
        return [r for r in self.results if r.reason == SHUTDOWN_REASON]


class BatchDriver:
    """
    Sequences work items through reconcile -> probe -> transfer.

    Items run strictly one at a time in enumeration order. Cancellation is
    observed only between items; an in-flight transfer always resolves.
    """

    def __init__(
        self,
        *,
        tool: YtDlp,
        store: ObjectStore,
        transfer: StreamingTransfer,
        options: ArchiveOptions,
        token: Optional[CancellationToken] = None,
        policy: Optional[FailurePolicy] = None,
        state: Optional[RunState] = None,
        enumerate_fn: Callable[[YtDlp, str], list[WorkItem]] = enumerate_items,
        probe_fn: Callable[[YtDlp, WorkItem, str], ItemMetadata] = probe,
        snapshot_fn: Callable[[ObjectStore], BucketSnapshot] = snapshot,
    ):
        self.tool = tool
        self.store = store
        self.transfer = transfer
        self.options = options
        self.token = token or CancellationToken()
        self.policy = policy or FailFast()
        self.state = state or RunState()
        self._enumerate = enumerate_fn
        self._probe = probe_fn
        self._snapshot = snapshot_fn

    # ------------------------------------------------------------
    # Run
    # ------------------------------------------------------------

    def run(self) -> ArchiveOutcome:
        self.state.set_stage(RunStage.ENUMERATING)
        try:
            self._use_tool(self.tool.validate())
            self.store.ensure_bucket(create=self.options.create_bucket)
            items = self._enumerate(self.tool, self.options.source_url)
            if not items:
                log.info("Nothing to archive")
                return self._finish(RunStatus.COMPLETED, [])
            snap = self._snapshot(self.store)
        except ConfigurationError as e:
            return self._abort(RunStatus.CONFIG_ERROR, e)
        except (StoreUnavailable, BucketMissing) as e:
            return self._abort(RunStatus.STORE_UNAVAILABLE, e)
        except EnumerationFailed as e:
            return self._abort(RunStatus.ENUMERATION_FAILED, e)

        return self._loop(items, snap)

    def _use_tool(self, tool: YtDlp) -> None:
        # Every child spawned from here on uses the resolved executable
        self.tool = tool
        if isinstance(self.transfer, StreamingTransfer):
            self.transfer.tool = tool

    def _loop(self, items: list[WorkItem], snap: BucketSnapshot) -> ArchiveOutcome:
        self.state.progress.reset(len(items))
        results: list[ItemResult] = []

        for index, item in enumerate(items):
            if self.token.cancellation_requested:
                self.state.set_stage(RunStage.DRAINING)
                remaining = items[index:]
                log.warning(
                    f"Shutdown requested. Skipping remaining {len(remaining)} video(s)."
                )
                results.extend(
                    ItemResult(item=it, outcome=Outcome.SKIPPED, reason=SHUTDOWN_REASON)
                    for it in remaining
                )
                return self._finish(RunStatus.DRAINED, results, SHUTDOWN_REASON)

            result = self._process(index, len(items), item, snap)
            results.append(result)
            self.state.progress.advance()

            if result.failed and self.policy.should_stop(result):
                return self._finish(RunStatus.FAILED, results, result.reason)

        log.info(BUCKETARR_DIVIDER())
        if any(r.failed for r in results):
            return self._finish(RunStatus.FAILED, results, "item_failures")
        return self._finish(RunStatus.COMPLETED, results)

    # ------------------------------------------------------------
    # One item
    # ------------------------------------------------------------

    def _process(
        self, index: int, total: int, item: WorkItem, snap: BucketSnapshot
    ) -> ItemResult:
        opts = self.options
        self.state.set_stage(RunStage.RECONCILING)

        log.info(BUCKETARR_DIVIDER())
        log.info(f"Processing video {index + 1} of {total}")
        log.info(f"URL: {item.source_url}")
        log.info(f"Title: {item.title}")
        log.info(f"Base S3 object key: {item.base_key}")

        try:
            meta: Optional[ItemMetadata] = None
            if needs_probe(snap, item.base_key, opts.match):
                meta = self._probe(self.tool, item, opts.format_selector)

            decision = decide(
                snap,
                item.base_key,
                meta.extension if meta else None,
                meta.expected_size if meta else 0,
                opts.match.reupload_on_size_diff,
                opts.match.check_full_key,
            )

            if decision == Decision.SKIP:
                log.info("File already exists in bucket. Skipping download.")
                key = item.object_key(meta.extension) if meta else None
                return ItemResult(item=item, outcome=Outcome.SKIPPED, object_key=key)

            assert meta is not None
            key = item.object_key(meta.extension)

            if decision == Decision.REUPLOAD:
                log.info("Stored size differs from the probed size. Re-uploading.")
            else:
                log.info("File does not exist in bucket. Proceeding with download.")
            log.info(f"Full S3 object key: {key}")

            if opts.dry_run:
                log.info(f"Dry run: would {decision.value} {key}")
                return ItemResult(
                    item=item,
                    outcome=Outcome.PLANNED,
                    object_key=key,
                    reason=decision.value,
                )

            self.state.set_stage(RunStage.TRANSFERRING)
            sent = self.transfer.run(
                item, key, meta.extension, meta.expected_size, opts.format_selector
            )
        except ItemError as e:
            log.error(f"Processing failed: {e}")
            return ItemResult(item=item, outcome=Outcome.FAILED, reason=f"{e.kind}: {e}")

        log.info(f"Successfully uploaded {key}")
        outcome = Outcome.REUPLOADED if decision == Decision.REUPLOAD else Outcome.UPLOADED
        return ItemResult(item=item, outcome=outcome, object_key=key, bytes_sent=sent)

    # ------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------

    def _finish(
        self, status: RunStatus, results: list[ItemResult], reason: Optional[str] = None
    ) -> ArchiveOutcome:
        self.state.finish(status, reason)
        return ArchiveOutcome(status=status, results=results, reason=reason)

    def _abort(self, status: RunStatus, err: Exception) -> ArchiveOutcome:
        log.error(f"{type(err).__name__}: {err}")
        return self._finish(status, [], str(err))
