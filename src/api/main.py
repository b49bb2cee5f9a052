"""
Local HTTP API for the hardware inventory.

Endpoints:
- GET /health
- GET /v1/inventory          lines grouped by category
- GET /v1/inventory/lines    flat ordered display lines
"""

import time

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from src.services.hardware.base import InventoryUnavailableError
from src.services.inventory_service import InventoryService
from src.utils.logger import log

app = FastAPI(
    title="Hardware Inventory Agent",
    description="Read-only hardware summary for the local machine.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_inventory_service() -> InventoryService:
    # Fresh sources per request; COM connections must not cross threads
    return InventoryService()


def _snapshot(service: InventoryService):
    try:
        return service.build_snapshot()
    except InventoryUnavailableError as e:
        log.error(f"Inventory request failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@app.get("/health", tags=["System"])
def health_check():
    """Verify API is alive."""
    return {"status": "ok", "timestamp": time.time(), "agent": "Hardware Inventory"}


@app.get("/v1/inventory", tags=["Inventory"])
def get_inventory(service: InventoryService = Depends(get_inventory_service)):
    """Full inventory grouped by category, plus the categories that fell back to unknown."""
    snapshot = _snapshot(service)
    return {
        "categories": snapshot.as_dict(),
        "degraded": [category.value for category in snapshot.degraded],
    }


@app.get("/v1/inventory/lines", tags=["Inventory"])
def get_inventory_lines(service: InventoryService = Depends(get_inventory_service)):
    """Display lines in summary order."""
    return {"lines": _snapshot(service).texts()}
