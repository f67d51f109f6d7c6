"""Tests for the catalog side of the registry."""

import json
import tempfile
from datetime import date
from pathlib import Path

from capreg.registry.errors import ErrorKind
from capreg.registry.models import CatalogEntry, CapabilityType, Usage
from capreg.registry.registry import Registry
from capreg.registry.store import JsonFileStore, MemoryStore


def _entry(**overrides) -> dict:
    data = {
        "type": "model",
        "description": "Instance segmentation with YOLO",
        "host": "http://10.0.0.5:8000",
        "endpoints": ["GET /health", "POST /segment"],
        "client_sdk": "https://example.com/sdk/yolo_client.py",
        "service_repo": "https://example.com/yolo-service",
        "api_docs": "https://example.com/yolo-service#api",
        "version": "1.0.0",
        "added_by": "backend-agent",
        "added_at": "2026-10-01",
        "usage": {
            "import": "from yolo_client import YoloClient",
            "init": "client = YoloClient()",
            "example": "masks = client.segment('frame.jpg')",
            "returns": "list of {label, score, mask}",
        },
    }
    data.update(overrides)
    return data


def _registry() -> Registry:
    return Registry(MemoryStore())


# --- Publish ---


def test_publish_and_get():
    reg = _registry()
    result = reg.publish_catalog_entry("yolo-segmentation", _entry())
    assert result.ok
    entry = reg.get_catalog_entry("yolo-segmentation").value
    assert entry.type == CapabilityType.model
    assert entry.usage.import_line == "from yolo_client import YoloClient"
    assert entry.endpoints == ["GET /health", "POST /segment"]


def test_publish_without_usage():
    reg = _registry()
    entry = _entry()
    del entry["usage"]
    result = reg.publish_catalog_entry("yolo-segmentation", entry)
    assert result.kind == ErrorKind.MISSING_USAGE_BLOCK
    assert reg.list_catalog() == {}


def test_publish_with_empty_usage_field():
    reg = _registry()
    entry = _entry()
    entry["usage"]["returns"] = "  "
    result = reg.publish_catalog_entry("yolo-segmentation", entry)
    assert result.kind == ErrorKind.MISSING_USAGE_BLOCK
    assert "returns" in result.error.message


def test_publish_dataclass_without_usage():
    reg = _registry()
    result = reg.publish_catalog_entry("depth", CatalogEntry(version="1.0.0"))
    assert result.kind == ErrorKind.MISSING_USAGE_BLOCK


def test_publish_dataclass_entry():
    reg = _registry()
    usage = Usage(import_line="import depth_client", init="c = depth_client.DepthClient()", example="c.depth(img)", returns="ndarray")
    entry = CatalogEntry(type="service", version="0.3.0", usage=usage)
    result = reg.publish_catalog_entry("depth", entry)
    assert result.ok
    assert entry.added_at == ""  # caller's object is not mutated
    assert result.value.added_at  # defaulted to today


def test_republish_is_rejected_and_stored_entry_unchanged():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry())
    before = reg.get_catalog_entry("yolo-segmentation").value.to_dict()

    result = reg.publish_catalog_entry("yolo-segmentation", _entry(description="changed", version="2.0.0"))
    assert result.kind == ErrorKind.DUPLICATE_CAPABILITY
    assert reg.get_catalog_entry("yolo-segmentation").value.to_dict() == before


def test_publish_invalid_type():
    reg = _registry()
    assert reg.publish_catalog_entry("x", _entry(type="robot")).kind == ErrorKind.INVALID_RECORD


def test_publish_invalid_version():
    reg = _registry()
    assert reg.publish_catalog_entry("x", _entry(version="latest")).kind == ErrorKind.INVALID_RECORD


def test_publish_invalid_endpoint():
    reg = _registry()
    result = reg.publish_catalog_entry("x", _entry(endpoints=["/segment"]))
    assert result.kind == ErrorKind.INVALID_RECORD


def test_publish_float_version_is_rejected():
    reg = _registry()
    result = reg.publish_catalog_entry("x", _entry(version=1.0))
    assert result.kind == ErrorKind.INVALID_RECORD
    assert "version" in result.error.message
    assert reg.list_catalog() == {}


def test_publish_date_added_at_is_stored_as_iso_string():
    reg = _registry()
    result = reg.publish_catalog_entry("x", _entry(added_at=date(2025, 1, 15)))
    assert result.ok
    assert reg.get_catalog_entry("x").value.added_at == "2025-01-15"


def test_publish_non_string_usage_field():
    reg = _registry()
    usage = dict(_entry()["usage"], returns=42)
    result = reg.publish_catalog_entry("x", _entry(usage=usage))
    assert result.kind == ErrorKind.INVALID_RECORD
    assert "usage.returns" in result.error.message


def test_publish_null_usage_field_is_missing():
    reg = _registry()
    usage = dict(_entry()["usage"], init=None)
    assert reg.publish_catalog_entry("x", _entry(usage=usage)).kind == ErrorKind.MISSING_USAGE_BLOCK


def test_publish_non_string_type():
    reg = _registry()
    assert reg.publish_catalog_entry("x", _entry(type=["model"])).kind == ErrorKind.INVALID_RECORD


def test_publish_date_to_file_store_leaves_valid_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        catalog = Path(tmpdir) / "catalog.json"
        reg = Registry(JsonFileStore(Path(tmpdir) / "wishlist.json", catalog))
        assert reg.publish_catalog_entry("x", _entry(added_at=date(2025, 1, 15))).ok
        assert json.loads(catalog.read_text())["capabilities"]["x"]["added_at"] == "2025-01-15"
        assert not list(Path(tmpdir).glob("*.tmp"))


def test_publish_empty_name():
    reg = _registry()
    assert reg.publish_catalog_entry("", _entry()).kind == ErrorKind.INVALID_RECORD


def test_publish_sets_updated():
    reg = _registry()
    assert reg.catalog_updated() is None
    reg.publish_catalog_entry("yolo-segmentation", _entry())
    assert reg.catalog_updated()


# --- Update / remove ---


def test_update_bumps_patch_when_version_not_newer():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry(version="1.2.3"))
    result = reg.update_catalog_entry("yolo-segmentation", _entry(version="1.2.3", description="v2"))
    assert result.ok
    stored = reg.get_catalog_entry("yolo-segmentation").value
    assert stored.version == "1.2.4"
    assert stored.description == "v2"


def test_update_keeps_newer_version():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry(version="1.2.3"))
    result = reg.update_catalog_entry("yolo-segmentation", _entry(version="2.0.0"))
    assert result.value.version == "2.0.0"


def test_update_keeps_original_added_fields():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry())
    result = reg.update_catalog_entry("yolo-segmentation", _entry(added_at="", added_by=""))
    assert result.value.added_at == "2026-10-01"
    assert result.value.added_by == "backend-agent"


def test_update_requires_usage():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry())
    assert reg.update_catalog_entry("yolo-segmentation", _entry(usage=None)).kind == ErrorKind.MISSING_USAGE_BLOCK


def test_update_not_found():
    reg = _registry()
    assert reg.update_catalog_entry("ghost", _entry()).kind == ErrorKind.NOT_FOUND


def test_remove_entry():
    reg = _registry()
    reg.publish_catalog_entry("yolo-segmentation", _entry())
    assert reg.remove_catalog_entry("yolo-segmentation").ok
    assert reg.get_catalog_entry("yolo-segmentation").kind == ErrorKind.NOT_FOUND


def test_list_catalog_keeps_order():
    reg = _registry()
    for name in ("zeta", "alpha", "mid"):
        reg.publish_catalog_entry(name, _entry())
    assert list(reg.list_catalog()) == ["zeta", "alpha", "mid"]


# --- Persistence ---


def test_catalog_file_shape():
    with tempfile.TemporaryDirectory() as tmpdir:
        catalog_path = Path(tmpdir) / "catalog.json"
        reg = Registry(JsonFileStore(Path(tmpdir) / "wishlist.json", catalog_path))
        reg.publish_catalog_entry("yolo-segmentation", _entry())

        data = json.loads(catalog_path.read_text())
        assert set(data) == {"updated", "capabilities"}
        assert data["capabilities"]["yolo-segmentation"] == _entry()
