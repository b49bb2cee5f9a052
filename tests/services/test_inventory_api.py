"""
Tests for the local inventory API.
"""

from fastapi.testclient import TestClient

from src.api.main import app, get_inventory_service
from src.services.hardware.sources import RecordedSource
from src.services.inventory_service import InventoryService

client = TestClient(app)

CAPTURE = {
    "Win32_OperatingSystem": [{"Caption": "Microsoft Windows 10 Pro", "Version": "10.0.19045"}],
    "Win32_Processor": [{"Name": "AMD Ryzen 7 5800X 8-Core Processor"}],
}


def _use_sources(tables, sources):
    app.dependency_overrides[get_inventory_service] = lambda: InventoryService(
        sources, tables=tables, use_nvidia_smi=False, use_psutil_fallback=False)


def teardown_function():
    app.dependency_overrides.clear()


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_inventory_grouped(tables):
    _use_sources(tables, [RecordedSource(CAPTURE)])
    response = client.get("/v1/inventory")
    assert response.status_code == 200

    body = response.json()
    assert body["categories"]["os"] == ["操作系统: Microsoft Windows 10 Pro", "系统版本: 10.0.19045", "版本标识: 22H2"]
    assert body["categories"]["cpu"] == ["CPU: AMD Ryzen 7 5800X 8-Core Processor"]
    assert "memory" in body["degraded"]
    assert "cpu" not in body["degraded"]


def test_inventory_lines(tables):
    _use_sources(tables, [RecordedSource(CAPTURE)])
    lines = client.get("/v1/inventory/lines").json()["lines"]
    assert lines[0] == "操作系统: Microsoft Windows 10 Pro"
    assert lines[-1] == "未检测到显示器信息"


def test_inventory_unavailable(tables):
    _use_sources(tables, [])
    response = client.get("/v1/inventory")
    assert response.status_code == 503
    assert client.get("/v1/inventory/lines").status_code == 503
