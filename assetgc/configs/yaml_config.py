"""
AssetGC YAML Configuration

Loading, saving, and defaults for ~/.assetgc/config.yaml.
"""

from pathlib import Path

import yaml

from assetgc.configs.logging import get_logger
from assetgc.configs.paths import ensure_data_dir, get_data_path

logger = get_logger("configs.yaml")

# --- Default Config Template ---

DEFAULT_CONFIG_YAML = """\
# AssetGC Configuration
# Edit this file to customize asset garbage collection.

# Blob store credentials.
# Prefer the CLOUDINARY_URL / CLOUDINARY_* env vars for secrets.
blob_store:
  cloud_name: ""
  upload_prefix: "https://api.cloudinary.com"

# Offline sweep
sweep:
  # Documents loaded per batch
  batch_size: 5000

  # Assets requested per store listing page (store maximum is 500)
  page_size: 500

  # Candidates printed by --dry-run
  report_limit: 50

  # Folders managed by other subsystems; never flagged as orphans
  excluded_folders:
    - b2b_documents
    - user_messages

# Background deletion worker
deletion_queue:
  maxsize: 1000

# Review API
http:
  port: 8090

debug: false
"""


def get_config_path() -> Path:
    """Get the path to config.yaml."""
    return get_data_path() / "config.yaml"


def load_yaml_config() -> dict:
    """
    Load configuration from ~/.assetgc/config.yaml.

    Returns:
        Configuration dictionary (empty if file doesn't exist or is invalid)
    """
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        loaded = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring invalid config file {config_path}: {e}")
        return {}

    return loaded if isinstance(loaded, dict) else {}


def save_yaml_config(config: dict) -> bool:
    """
    Save configuration to ~/.assetgc/config.yaml.

    Args:
        config: Configuration dictionary to save

    Returns:
        True if successful
    """
    config_path = get_config_path()
    ensure_data_dir()

    try:
        content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
        config_path.write_text(content)
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        return False


def create_default_config() -> bool:
    """
    Create default config.yaml if it doesn't exist.

    Returns:
        True if file was created, False if it already exists
    """
    config_path = get_config_path()
    if config_path.exists():
        return False

    ensure_data_dir()
    config_path.write_text(DEFAULT_CONFIG_YAML)
    return True
