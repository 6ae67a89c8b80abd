from bucketarr.env.env import (
    DEFAULT_FORMAT,
    DEFAULT_PART_SIZE,
    Environment,
    StoreEnvironment,
    get_env,
    get_logging_env,
    get_store_env,
    reset_env_caches,
    split_endpoint,
    _load_dotenv,
)

from bucketarr.env.paths import PROJECT_ROOT, env_file, logs_dir, module_logs_dir

__all__ = [
    "DEFAULT_FORMAT",
    "DEFAULT_PART_SIZE",
    "Environment",
    "StoreEnvironment",
    "get_env",
    "get_logging_env",
    "get_store_env",
    "reset_env_caches",
    "split_endpoint",
    "PROJECT_ROOT",
    "env_file",
    "logs_dir",
    "module_logs_dir",
    "_load_dotenv",
]
