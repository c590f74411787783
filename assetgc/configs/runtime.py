"""
AssetGC Runtime Configuration

Runtime defaults and configuration merging logic.
Combines defaults, YAML config, and environment variables.
"""

import copy
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from assetgc.configs.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_EXCLUDED_FOLDERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REPORT_LIMIT,
    DELETION_QUEUE_MAXSIZE,
    TIMEOUTS,
)
from assetgc.configs.yaml_config import load_yaml_config
from assetgc.exceptions import MissingConfigError

# --- Default Runtime Configuration ---

DEFAULT_CONFIG = {
    "blob_store": {
        "cloud_name": "",
        "api_key": "",
        "api_secret": "",
        "upload_prefix": "https://api.cloudinary.com",
    },
    "sweep": {
        "batch_size": DEFAULT_BATCH_SIZE,
        "page_size": DEFAULT_PAGE_SIZE,
        "report_limit": DEFAULT_REPORT_LIMIT,
        "excluded_folders": sorted(DEFAULT_EXCLUDED_FOLDERS),
    },
    "deletion_queue": {
        "maxsize": DELETION_QUEUE_MAXSIZE,
    },
    "http": {
        "port": 8090,
    },
    "debug": False,
    "timeouts": TIMEOUTS,
}

# Env var -> (section, key, converter)
ENV_OVERRIDES = {
    "CLOUDINARY_CLOUD_NAME": ("blob_store", "cloud_name", str),
    "CLOUDINARY_API_KEY": ("blob_store", "api_key", str),
    "CLOUDINARY_API_SECRET": ("blob_store", "api_secret", str),
    "ASSETGC_SWEEP_BATCH_SIZE": ("sweep", "batch_size", int),
    "ASSETGC_SWEEP_PAGE_SIZE": ("sweep", "page_size", int),
    "ASSETGC_QUEUE_MAXSIZE": ("deletion_queue", "maxsize", int),
}


@dataclass(frozen=True)
class BlobStoreSettings:
    """Validated blob store credentials."""

    cloud_name: str
    api_key: str
    api_secret: str
    upload_prefix: str


def parse_cloudinary_url(url: str) -> dict[str, str]:
    """
    Split a cloudinary://<api_key>:<api_secret>@<cloud_name> URL.

    Returns:
        Dict with whichever of cloud_name, api_key and api_secret are present
    """
    parsed = urlparse(url)
    if parsed.scheme != "cloudinary":
        return {}

    values = {}
    if parsed.hostname:
        values["cloud_name"] = parsed.hostname
    if parsed.username:
        values["api_key"] = parsed.username
    if parsed.password:
        values["api_secret"] = parsed.password
    return values


def get_full_config() -> dict:
    """
    Get full configuration merged from defaults, YAML, and environment.

    Priority (highest wins):
    1. Environment variables (CLOUDINARY_URL first, then individual vars)
    2. YAML config file
    3. DEFAULT_CONFIG

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    yaml_config = load_yaml_config()
    for section, values in yaml_config.items():
        if isinstance(config.get(section), dict) and isinstance(values, dict):
            for key, value in values.items():
                if key in config[section] and value is not None:
                    config[section][key] = value
        elif section in config and not isinstance(config[section], dict):
            config[section] = values

    if os.environ.get("CLOUDINARY_URL"):
        config["blob_store"].update(parse_cloudinary_url(os.environ["CLOUDINARY_URL"]))

    for env_name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        try:
            config[section][key] = convert(raw)
        except ValueError:
            pass

    if os.environ.get("ASSETGC_DEBUG"):
        config["debug"] = os.environ["ASSETGC_DEBUG"].lower() in ("true", "1", "yes")

    return config


def get_blob_store_settings(config: dict | None = None) -> BlobStoreSettings:
    """
    Validate and return blob store credentials.

    Args:
        config: Merged configuration (defaults to get_full_config())

    Returns:
        BlobStoreSettings

    Raises:
        MissingConfigError: cloud name, api key or api secret is missing
    """
    if config is None:
        config = get_full_config()
    store = config.get("blob_store", {})

    missing = [
        env_name
        for env_name, key in (
            ("CLOUDINARY_CLOUD_NAME", "cloud_name"),
            ("CLOUDINARY_API_KEY", "api_key"),
            ("CLOUDINARY_API_SECRET", "api_secret"),
        )
        if not store.get(key)
    ]
    if missing:
        raise MissingConfigError("Blob store credentials are not configured", missing=missing)

    return BlobStoreSettings(
        cloud_name=store["cloud_name"],
        api_key=store["api_key"],
        api_secret=store["api_secret"],
        upload_prefix=store.get("upload_prefix") or DEFAULT_CONFIG["blob_store"]["upload_prefix"],
    )
