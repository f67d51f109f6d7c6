"""Tests for the static client inspector."""

import tempfile
from pathlib import Path

from capreg.conformance.checker import check
from capreg.conformance.inspector import inspect_file, inspect_source

GOOD_CLIENT = '''"""Client for the YOLO segmentation service.

Usage:
    from yolo_client import YoloClient
    client = YoloClient()
    masks = client.segment("frame.jpg")
"""

from __future__ import annotations

import base64
import json
import urllib.request
from urllib.error import URLError


class Detection:
    """One detected object."""


class YoloClient:
    def __init__(self, host="http://10.0.0.5:8000", timeout=10):
        self.host = host
        self.timeout = timeout

    def health(self):
        """Return the service health payload."""
        return self._get("/health")

    def segment(self, image, *, threshold=0.5):
        """Segment an image.

        image may be raw bytes, a file path, a numpy ndarray, or a base64 string.
        """
        import numpy as np

        return []

    def _get(self, path):
        with urllib.request.urlopen(self.host + path, timeout=self.timeout) as resp:
            return json.loads(resp.read())
'''

BAD_CLIENT = '''import requests


class Helper:
    def __init__(self, url):
        self.url = url


class ServiceClient:
    def __init__(self, host):
        self.host = host

    def ping(self):
        return requests.get(self.host).ok
'''


def test_inspect_good_client():
    d = inspect_source(GOOD_CLIENT)
    assert d.class_name == "YoloClient"
    assert d.imports == ["base64", "json", "urllib.request", "urllib.error", "numpy"]
    assert "__future__" not in d.imports
    assert d.declared_types == ["Detection", "YoloClient"]
    assert [p.name for p in d.constructor] == ["host", "timeout"]
    assert d.constructor[0].default_value == "http://10.0.0.5:8000"
    assert d.constructor[1].default_value == "10"
    assert [m.name for m in d.methods] == ["health", "segment"]
    segment = d.method("segment")
    assert [p.name for p in segment.parameters] == ["image", "threshold"]
    assert [p.name for p in segment.required_parameters] == ["image"]
    assert "base64" in segment.docstring
    assert d.module_docstring.startswith("Client for the YOLO")


def test_good_client_is_conformant():
    report = check(inspect_source(GOOD_CLIENT))
    assert report.passed, [r.detail for r in report.failures]


def test_bad_client_picks_client_class():
    d = inspect_source(BAD_CLIENT)
    assert d.class_name == "ServiceClient"
    assert d.constructor[0].required


def test_bad_client_report():
    report = check(inspect_source(BAD_CLIENT))
    failed = {r.name for r in report.failures}
    assert {"forbidden-imports", "constructor-host-param", "has-health-method", "module-docstring-usage"} <= failed


def test_relative_imports_are_kept_with_dots():
    d = inspect_source("from . import types\nfrom .models import Mask\n")
    assert d.imports == [".types", ".models"]


def test_syntax_error_gives_empty_descriptor():
    d = inspect_source("def broken(:\n")
    assert d.imports == []
    assert d.class_name == ""
    assert not check(d).passed


def test_inspect_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "yolo_client.py"
        path.write_text(GOOD_CLIENT)
        assert inspect_file(path).class_name == "YoloClient"
