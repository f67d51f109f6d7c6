"""Conformance data models: the client descriptor and the report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ParameterSpec:
    """A parameter of the constructor or of a method (receiver excluded)."""

    name: str
    default_value: Optional[str] = None  # Literal value for strings, source text otherwise
    required: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> ParameterSpec:
        if isinstance(data, str):
            return cls(name=data)
        has_default = "default" in data or "default_value" in data
        default = data.get("default", data.get("default_value"))
        return cls(
            name=data["name"],
            default_value=None if default is None else str(default),
            required=data.get("required", not has_default),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "required": self.required}
        if not self.required:
            data["default"] = self.default_value
        return data


@dataclass
class MethodSpec:
    """A public method of the client class."""

    name: str
    parameters: list[ParameterSpec] = field(default_factory=list)
    docstring: str = ""

    @property
    def required_parameters(self) -> list[ParameterSpec]:
        return [p for p in self.parameters if p.required]

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> MethodSpec:
        if isinstance(data, str):
            return cls(name=data)
        return cls(
            name=data["name"],
            parameters=[ParameterSpec.from_dict(p) for p in data.get("parameters", [])],
            docstring=data.get("docstring") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "parameters": [p.to_dict() for p in self.parameters],
            "docstring": self.docstring,
        }


@dataclass
class ClientDescriptor:
    """Structural summary of a candidate client module.

    Produced by a static inspector (see ``capreg.conformance.inspector``) or
    written by hand as YAML/JSON; the checker only ever consumes it.
    """

    imports: list[str] = field(default_factory=list)
    constructor: list[ParameterSpec] = field(default_factory=list)
    methods: list[MethodSpec] = field(default_factory=list)
    module_docstring: str = ""
    declared_types: list[str] = field(default_factory=list)
    class_name: str = ""

    def method(self, name: str) -> Optional[MethodSpec]:
        for m in self.methods:
            if m.name == name:
                return m
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientDescriptor:
        return cls(
            imports=list(data.get("imports", [])),
            constructor=[ParameterSpec.from_dict(p) for p in data.get("constructor", [])],
            methods=[MethodSpec.from_dict(m) for m in data.get("methods", [])],
            module_docstring=data.get("module_docstring") or "",
            declared_types=list(data.get("declared_types", [])),
            class_name=data.get("class_name") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "imports": list(self.imports),
            "constructor": [p.to_dict() for p in self.constructor],
            "methods": [m.to_dict() for m in self.methods],
            "module_docstring": self.module_docstring,
            "declared_types": list(self.declared_types),
        }


@dataclass
class CheckResult:
    """Outcome of one conformance check."""

    name: str
    passed: bool
    detail: str = ""


@dataclass
class ConformanceReport:
    """Ordered results of every check; passes only if all of them pass."""

    results: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.passed]

    def result(self, name: str) -> Optional[CheckResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        ok = len(self.results) - len(self.failures)
        return f"[{status}] {ok}/{len(self.results)} check(s) passed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "results": [
                {"check": r.name, "passed": r.passed, "detail": r.detail} for r in self.results
            ],
        }
