"""
AssetGC HTTP Server

FastAPI app for the orphan review workflow.
"""

from datetime import datetime, timezone

from fastapi import FastAPI

from assetgc.http.orphans import router as orphans_router

# Track server startup time
_startup_time = datetime.now(timezone.utc).isoformat()


# Create FastAPI app
app = FastAPI(
    title="AssetGC Server",
    description="Orphan asset review and sweep endpoints",
    version="1.0.0",
)

app.include_router(orphans_router, tags=["orphans"])


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "started_at": _startup_time}


def run_server(host: str = "0.0.0.0", port: int = 8090):
    """Run the FastAPI server."""
    import uvicorn

    from assetgc.configs import get_logger
    from assetgc.configs.services import stop_deletion_queue

    logger = get_logger("http")
    logger.info(f"Starting HTTP server on {host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    finally:
        stop_deletion_queue()
