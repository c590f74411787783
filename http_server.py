#!/usr/bin/env python3
"""
AssetGC HTTP Server

Serves the orphan review API.

Port: ASSETGC_HTTP_PORT, else http.port from config.yaml (default 8090).
"""

import os

from assetgc.configs import get_full_config, get_logger, setup_logging
from assetgc.http import run_server


def main():
    # Initialize logging (must be called before get_logger)
    setup_logging()
    logger = get_logger("entrypoint")

    port = int(os.environ.get("ASSETGC_HTTP_PORT") or get_full_config()["http"]["port"])
    logger.info("Orphan review API starting")
    run_server(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
