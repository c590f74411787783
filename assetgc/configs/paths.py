"""
AssetGC Data Paths

Manages the data directory and database location for AssetGC storage.
"""

import os
from pathlib import Path

DEFAULT_DATA_PATH = Path.home() / ".assetgc"


def get_data_path() -> Path:
    """Get the AssetGC data directory path.

    Uses ASSETGC_DATA_PATH when set, otherwise ~/.assetgc.
    """
    data_path = os.environ.get("ASSETGC_DATA_PATH")
    if data_path:
        return Path(data_path).expanduser()
    return DEFAULT_DATA_PATH


def ensure_data_dir() -> Path:
    """Ensure the data directory exists.

    Returns:
        Path to data directory
    """
    data_path = get_data_path()
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_db_path() -> str:
    """Get the ChromaDB persistence directory.

    Priority:
    1. ASSETGC_DB_PATH env var
    2. <data path>/db

    Returns:
        Database path as string
    """
    env_path = os.environ.get("ASSETGC_DB_PATH")
    if env_path:
        return os.path.expanduser(env_path)
    return str(get_data_path() / "db")
