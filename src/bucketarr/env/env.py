from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from bucketarr.errors import ConfigurationError

DEFAULT_FORMAT = "best/bestvideo+bestaudio"
DEFAULT_PART_SIZE = 10 * 1024 * 1024
MIN_PART_SIZE = 5 * 1024 * 1024

FAILURE_POLICIES = ("fail-fast", "keep-going")

# ------------------------------------------------------------
# dotenv (bootstrap owns usage)
# ------------------------------------------------------------


def _load_dotenv(path: Path) -> None:
    """
    Load a .env file.
    - Silent when the file is missing
    - Never overrides existing os.environ (shell / CI always win)
    """
    if not path.exists():
        return
    load_dotenv(path, override=False)


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------


def _require(name: str) -> str:
    v = os.environ.get(name)
    if not v:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return v


def _as_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(v: str, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return default


def _mask(secret: str) -> str:
    if len(secret) <= 4:
        return "****"
    return f"{secret[:2]}{'*' * (len(secret) - 4)}{secret[-2:]}"


def split_endpoint(raw: str, ssl: bool) -> tuple[str, bool]:
    """
    Accept `host[:port]` or a URL. A URL scheme wins over the ssl flag.
    """
    raw = raw.strip()
    if "://" not in raw:
        return raw.rstrip("/"), ssl

    parts = urlsplit(raw)
    if not parts.netloc:
        raise ConfigurationError(f"Invalid S3 endpoint: {raw}")
    return parts.netloc, parts.scheme.lower() == "https"


# ------------------------------------------------------------
# Logging environment (SAFE ANYWHERE)
# ------------------------------------------------------------


@dataclass(frozen=True)
class LoggingEnvironment:
    log_level: str
    log_retention: int
    verbose: bool
    quiet: bool


def get_logging_env() -> LoggingEnvironment:
    return LoggingEnvironment(
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_retention=_as_int(os.environ.get("LOG_RETENTION", "30"), 30),
        verbose=_as_bool(os.environ.get("BUCKETARR_VERBOSE", "0")),
        quiet=_as_bool(os.environ.get("BUCKETARR_QUIET", "0")),
    )


# ------------------------------------------------------------
# Store environment (archive + cleanup)
# ------------------------------------------------------------


@dataclass(frozen=True)
class StoreEnvironment:
    endpoint: str
    secure: bool
    access_key: str
    secret_key: str
    bucket: str
    region: Optional[str]


def get_store_env() -> StoreEnvironment:
    endpoint, secure = split_endpoint(
        _require("S3_ENDPOINT"),
        _as_bool(os.environ.get("S3_SSL", "1")),
    )
    return StoreEnvironment(
        endpoint=endpoint,
        secure=secure,
        access_key=_require("S3_ACCESS_KEY"),
        secret_key=_require("S3_SECRET_KEY"),
        bucket=_require("S3_BUCKET"),
        region=os.environ.get("S3_REGION") or None,
    )


# ------------------------------------------------------------
# Full runtime environment (ARCHIVE PIPELINE)
# ------------------------------------------------------------


class Environment:
    def __init__(self):
        # Logging snapshot (immutable)
        self._logging = get_logging_env()

        # ---- REQUIRED ----
        self.store = get_store_env()
        self.source_url = _require("BUCKETARR_URL")

        # ---- EXTRACTION ----
        self.ytdlp_path = os.environ.get("BUCKETARR_YTDLP_PATH") or "yt-dlp"
        self.format_selector = os.environ.get("BUCKETARR_FORMAT") or DEFAULT_FORMAT

        # ---- BEHAVIOR ----
        self.command = os.environ.get("BUCKETARR_COMMAND", "archive")
        self.create_bucket = _as_bool(os.environ.get("BUCKETARR_CREATE_BUCKET", "0"))
        self.reupload_on_size_diff = _as_bool(
            os.environ.get("BUCKETARR_REUPLOAD_ON_SIZE_DIFF", "0")
        )
        self.check_full_key = _as_bool(os.environ.get("BUCKETARR_CHECK_FULL_KEY", "0"))
        self.dry_run = _as_bool(os.environ.get("BUCKETARR_DRY_RUN", "0"))

        self.failure_policy = (
            os.environ.get("BUCKETARR_FAILURE_POLICY") or "fail-fast"
        ).strip().lower()
        if self.failure_policy not in FAILURE_POLICIES:
            raise ConfigurationError(
                f"Unknown failure policy: {self.failure_policy} "
                f"(expected one of: {', '.join(FAILURE_POLICIES)})"
            )

        self.part_size = _as_int(
            os.environ.get("BUCKETARR_PART_SIZE", str(DEFAULT_PART_SIZE)),
            DEFAULT_PART_SIZE,
        )
        if self.part_size < MIN_PART_SIZE:
            raise ConfigurationError(
                f"Part size must be at least {MIN_PART_SIZE} bytes, got {self.part_size}"
            )

    def as_dict(self) -> dict:
        return {
            "Logging": {
                "log_level": self.log_level,
                "log_retention": self.log_retention,
                "verbose": self.verbose,
                "quiet": self.quiet,
            },
            "Store": {
                "endpoint": self.store.endpoint,
                "secure": self.store.secure,
                "bucket": self.store.bucket,
                "region": self.store.region or "-",
                "access_key": _mask(self.store.access_key),
                "secret_key": _mask(self.store.secret_key),
            },
            "Extraction": {
                "source_url": self.source_url,
                "ytdlp_path": self.ytdlp_path,
                "format": self.format_selector,
            },
            "Behavior": {
                "create_bucket": self.create_bucket,
                "reupload_on_size_diff": self.reupload_on_size_diff,
                "check_full_key": self.check_full_key,
                "failure_policy": self.failure_policy,
                "part_size": self.part_size,
                "dry_run": self.dry_run,
            },
        }

    # ---- logging passthrough ----
    @property
    def log_level(self) -> str:
        return self._logging.log_level

    @property
    def log_retention(self) -> int:
        return self._logging.log_retention

    @property
    def verbose(self) -> bool:
        return self._logging.verbose

    @property
    def quiet(self) -> bool:
        return self._logging.quiet

    @property
    def interactive(self) -> bool:
        return not self.quiet and sys.stdout.isatty()


_ENV: Optional[Environment] = None


def reset_env_caches() -> None:
    """Invalidate cached views of environment variables."""
    global _ENV
    _ENV = None


def get_env() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment()
    return _ENV
