"""
AssetGC Configuration Module

Re-exports commonly used functions for cleaner imports across the codebase.
"""

# Logging (most commonly used)
from assetgc.configs.logging import get_logger, setup_logging

# Paths
from assetgc.configs.paths import ensure_data_dir, get_data_path, get_db_path

# Constants
from assetgc.configs.constants import (
    ACCESS_MODES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_EXCLUDED_FOLDERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REPORT_LIMIT,
    RESOURCE_KINDS,
    TIMEOUTS,
    get_timeout,
)

# YAML config
from assetgc.configs.yaml_config import (
    DEFAULT_CONFIG_YAML,
    create_default_config,
    get_config_path,
    load_yaml_config,
    save_yaml_config,
)

# Runtime
from assetgc.configs.runtime import (
    DEFAULT_CONFIG,
    BlobStoreSettings,
    get_blob_store_settings,
    get_full_config,
)

# Note: services.py is NOT imported here to avoid circular imports.
# Services should be imported directly: from assetgc.configs.services import ...

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Paths
    "get_data_path",
    "ensure_data_dir",
    "get_db_path",
    # Constants
    "ACCESS_MODES",
    "RESOURCE_KINDS",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REPORT_LIMIT",
    "DEFAULT_EXCLUDED_FOLDERS",
    "TIMEOUTS",
    "get_timeout",
    # YAML config
    "DEFAULT_CONFIG_YAML",
    "get_config_path",
    "load_yaml_config",
    "save_yaml_config",
    "create_default_config",
    # Runtime
    "DEFAULT_CONFIG",
    "BlobStoreSettings",
    "get_blob_store_settings",
    "get_full_config",
]
