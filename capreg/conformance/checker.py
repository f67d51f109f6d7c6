"""SDK conformance checker: evaluate a client descriptor against the SDK rules.

Every check runs regardless of earlier failures, so the report lists every
problem at once. The checker is a pure function of the descriptor: no I/O,
no shared state.
"""

from __future__ import annotations

import re
from typing import Callable
from urllib.parse import urlparse

from capreg.conformance.models import CheckResult, ClientDescriptor, ConformanceReport

FORBIDDEN_IMPORTS = ("requests", "httpx", "http.client", "aiohttp", "grpc")

ALLOWED_IMPORTS = (
    "urllib.request",
    "urllib.error",
    "urllib.parse",
    "json",
    "base64",
    "io",
    "os",
    "time",
    "math",
    "numpy",
    "cv2",
)

# Parameter names that mark a method as accepting an image
IMAGE_PARAM_RE = re.compile(r"image|img|frame", re.IGNORECASE)

# What the docstring of an image-accepting method must mention, per input form
IMAGE_INPUT_FORMS: dict[str, tuple[str, ...]] = {
    "bytes": ("bytes",),
    "file path": ("path",),
    "numpy array": ("numpy", "ndarray", "np.array"),
    "base64 string": ("base64",),
}

_IMPORT_LINE_RE = re.compile(r"^\s*(?:>>>\s*)?(?:from\s+[\w.]+\s+)?import\s+[\w.]+", re.MULTILINE)
_CALL_RE = re.compile(r"[A-Za-z_][\w.]*\(")


def check(descriptor: ClientDescriptor) -> ConformanceReport:
    """Run the full battery of checks and return the report."""
    report = ConformanceReport()
    for name, fn in CHECKS:
        try:
            passed, detail = fn(descriptor)
        except Exception as e:  # A malformed descriptor is a failed check, not a crash
            passed, detail = False, f"could not evaluate: {e}"
        report.results.append(CheckResult(name=name, passed=passed, detail=detail))
    return report


def _matches(name: str, module: str) -> bool:
    return name == module or name.startswith(module + ".")


def _is_own(name: str, descriptor: ClientDescriptor) -> bool:
    if name.startswith("."):
        return True
    return any(part in descriptor.declared_types for part in name.split("."))


def _check_forbidden_imports(d: ClientDescriptor) -> tuple[bool, str]:
    hits = sorted({i for i in d.imports for f in FORBIDDEN_IMPORTS if _matches(i, f)})
    if hits:
        return False, f"forbidden HTTP/RPC libraries imported: {', '.join(hits)}"
    return True, "no forbidden imports"


def _check_allowed_imports_only(d: ClientDescriptor) -> tuple[bool, str]:
    outside = sorted(
        {
            i
            for i in d.imports
            if not _is_own(i, d) and not any(_matches(i, a) for a in ALLOWED_IMPORTS)
        }
    )
    if outside:
        return False, f"imports outside the allow-list: {', '.join(outside)}"
    return True, "all imports are on the allow-list"


def _check_constructor_host_param(d: ClientDescriptor) -> tuple[bool, str]:
    host = next((p for p in d.constructor if p.name == "host"), None)
    if host is None:
        return False, "constructor has no 'host' parameter"
    if host.required or host.default_value is None:
        return False, "'host' parameter has no default value"
    parsed = urlparse(host.default_value)
    if parsed.scheme not in ("http", "https", "ws", "wss") or not parsed.netloc:
        return False, f"'host' default {host.default_value!r} is not a URL"
    return True, f"host defaults to {host.default_value}"


def _check_has_health_method(d: ClientDescriptor) -> tuple[bool, str]:
    health = d.method("health")
    if health is None:
        return False, "no 'health' method"
    required = [p.name for p in health.required_parameters]
    if required:
        return False, f"'health' requires arguments: {', '.join(required)}"
    return True, "health() takes no required arguments"


def _check_image_input_polymorphism(d: ClientDescriptor) -> tuple[bool, str]:
    image_methods = [m for m in d.methods if any(IMAGE_PARAM_RE.search(p.name) for p in m.parameters)]
    if not image_methods:
        return True, "no image-accepting methods"

    problems = []
    for m in image_methods:
        doc = m.docstring.lower()
        missing = [form for form, words in IMAGE_INPUT_FORMS.items() if not any(w in doc for w in words)]
        if missing:
            problems.append(f"{m.name}() does not document {', '.join(missing)}")
    if problems:
        return False, "; ".join(problems)
    return True, f"{len(image_methods)} image method(s) document all input forms"


def _check_module_docstring_usage(d: ClientDescriptor) -> tuple[bool, str]:
    doc = d.module_docstring or ""
    if not doc.strip():
        return False, "no module docstring"
    has_import = bool(_IMPORT_LINE_RE.search(doc))
    has_call = any(
        _CALL_RE.search(line)
        for line in doc.splitlines()
        if line.strip() and not _IMPORT_LINE_RE.match(line)
    )
    missing = [what for what, ok in (("an import line", has_import), ("an example call", has_call)) if not ok]
    if missing:
        return False, f"module docstring lacks {' and '.join(missing)}"
    return True, "module docstring shows import and example call"


CHECKS: list[tuple[str, Callable[[ClientDescriptor], tuple[bool, str]]]] = [
    ("forbidden-imports", _check_forbidden_imports),
    ("allowed-imports-only", _check_allowed_imports_only),
    ("constructor-host-param", _check_constructor_host_param),
    ("has-health-method", _check_has_health_method),
    ("image-input-polymorphism", _check_image_input_polymorphism),
    ("module-docstring-usage", _check_module_docstring_usage),
]
