"""Tests for the client SDK conformance checker."""

from capreg.conformance.checker import check
from capreg.conformance.models import ClientDescriptor, MethodSpec, ParameterSpec

CHECK_NAMES = [
    "forbidden-imports",
    "allowed-imports-only",
    "constructor-host-param",
    "has-health-method",
    "image-input-polymorphism",
    "module-docstring-usage",
]

MODULE_DOC = """Client for the YOLO segmentation service.

Usage:
    from yolo_client import YoloClient
    client = YoloClient()
    masks = client.segment("frame.jpg")
"""

IMAGE_DOC = """Segment an image.

Args:
    image: bytes, a file path, a numpy ndarray (BGR), or a base64 string.
"""


def _descriptor(**overrides) -> ClientDescriptor:
    data = dict(
        class_name="YoloClient",
        imports=["urllib.request", "urllib.error", "json", "base64", "numpy"],
        constructor=[ParameterSpec(name="host", default_value="http://10.0.0.5:8000", required=False)],
        methods=[
            MethodSpec(name="health"),
            MethodSpec(name="segment", parameters=[ParameterSpec(name="image")], docstring=IMAGE_DOC),
        ],
        module_docstring=MODULE_DOC,
    )
    data.update(overrides)
    return ClientDescriptor(**data)


def test_conformant_client_passes():
    report = check(_descriptor())
    assert report.passed, [r.detail for r in report.failures]
    assert [r.name for r in report.results] == CHECK_NAMES


def test_minimal_passing_scenario():
    report = check(
        _descriptor(
            imports=["json"],
            methods=[MethodSpec(name="health")],
        )
    )
    assert report.passed
    assert report.result("image-input-polymorphism").detail == "no image-accepting methods"


def test_requests_import_fails():
    report = check(_descriptor(imports=["requests", "json"]))
    assert not report.passed
    forbidden = report.result("forbidden-imports")
    assert not forbidden.passed
    assert "requests" in forbidden.detail


def test_submodule_of_forbidden_import_fails():
    report = check(_descriptor(imports=["grpc.aio"]))
    assert not report.result("forbidden-imports").passed


def test_http_client_is_forbidden_but_urllib_allowed():
    report = check(_descriptor(imports=["http.client", "urllib.parse"]))
    assert not report.result("forbidden-imports").passed
    assert "urllib.parse" not in report.result("allowed-imports-only").detail


def test_report_is_exhaustive():
    report = check(ClientDescriptor(imports=["httpx"]))
    assert len(report.results) == len(CHECK_NAMES)
    failed = {r.name for r in report.failures}
    assert failed == {
        "forbidden-imports",
        "allowed-imports-only",
        "constructor-host-param",
        "has-health-method",
        "module-docstring-usage",
    }


def test_import_outside_allow_list():
    report = check(_descriptor(imports=["json", "pandas"]))
    allowed = report.result("allowed-imports-only")
    assert not allowed.passed
    assert "pandas" in allowed.detail
    assert report.result("forbidden-imports").passed


def test_own_types_are_allowed():
    report = check(_descriptor(imports=["json", ".types", "yolo_types"], declared_types=["yolo_types"]))
    assert report.result("allowed-imports-only").passed


def test_host_without_default():
    report = check(_descriptor(constructor=[ParameterSpec(name="host")]))
    assert "no default" in report.result("constructor-host-param").detail


def test_host_default_not_url():
    report = check(_descriptor(constructor=[ParameterSpec(name="host", default_value="localhost", required=False)]))
    assert not report.result("constructor-host-param").passed


def test_missing_host():
    report = check(_descriptor(constructor=[ParameterSpec(name="url", default_value="http://x:1", required=False)]))
    assert "no 'host'" in report.result("constructor-host-param").detail


def test_health_with_required_argument():
    report = check(_descriptor(methods=[MethodSpec(name="health", parameters=[ParameterSpec(name="timeout")])]))
    result = report.result("has-health-method")
    assert not result.passed
    assert "timeout" in result.detail


def test_health_with_optional_argument():
    method = MethodSpec(name="health", parameters=[ParameterSpec(name="timeout", default_value="5", required=False)])
    assert check(_descriptor(methods=[method])).result("has-health-method").passed


def test_image_method_missing_forms():
    method = MethodSpec(name="detect", parameters=[ParameterSpec(name="img")], docstring="img: bytes or path")
    result = check(_descriptor(methods=[MethodSpec(name="health"), method])).result("image-input-polymorphism")
    assert not result.passed
    assert "numpy array" in result.detail
    assert "base64 string" in result.detail


def test_module_docstring_missing():
    result = check(_descriptor(module_docstring="")).result("module-docstring-usage")
    assert not result.passed


def test_module_docstring_without_example_call():
    result = check(_descriptor(module_docstring="Client.\n\n    import yolo_client\n")).result("module-docstring-usage")
    assert not result.passed
    assert "example call" in result.detail


def test_module_docstring_without_import():
    result = check(_descriptor(module_docstring="Client.\n\n    client.segment(img)\n")).result("module-docstring-usage")
    assert "import line" in result.detail


def test_descriptor_from_dict():
    descriptor = ClientDescriptor.from_dict(
        {
            "imports": ["json"],
            "constructor": [{"name": "host", "default": "http://10.0.0.5:8000"}],
            "methods": ["health"],
            "module_docstring": MODULE_DOC,
        }
    )
    assert descriptor.constructor[0].required is False
    assert check(descriptor).passed


def test_malformed_descriptor_does_not_raise():
    report = check(ClientDescriptor(imports=[None]))  # type: ignore[list-item]
    assert not report.passed
    assert len(report.results) == len(CHECK_NAMES)


def test_summary():
    assert check(_descriptor()).summary().startswith("[PASS]")
    assert check(ClientDescriptor()).summary().startswith("[FAIL]")
