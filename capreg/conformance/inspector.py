"""Static inspector: builds a ClientDescriptor from Python client source.

Uses the standard-library ast module; the client module is never imported or
executed. Imports are collected from the whole tree, so lazy imports inside
functions are seen too.
"""

from __future__ import annotations

import ast
from pathlib import Path

from capreg.conformance.models import ClientDescriptor, MethodSpec, ParameterSpec


def inspect_file(file_path: str | Path) -> ClientDescriptor:
    """Inspect a client module on disk."""
    return inspect_source(Path(file_path).read_text(errors="replace"), filename=str(file_path))


def inspect_source(source: str, filename: str = "<client>") -> ClientDescriptor:
    """Inspect client module source text.

    A module that does not parse yields an empty descriptor, which fails
    every check that needs something declared.
    """
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError:
        return ClientDescriptor()

    descriptor = ClientDescriptor(
        imports=_collect_imports(tree),
        module_docstring=ast.get_docstring(tree) or "",
        declared_types=[n.name for n in tree.body if isinstance(n, ast.ClassDef)],
    )

    client = _find_client_class(tree)
    if client is None:
        return descriptor

    descriptor.class_name = client.name
    for item in client.body:
        if not isinstance(item, ast.FunctionDef | ast.AsyncFunctionDef):
            continue
        if item.name == "__init__":
            descriptor.constructor = _parse_parameters(item)
        elif not item.name.startswith("_"):
            descriptor.methods.append(
                MethodSpec(
                    name=item.name,
                    parameters=_parse_parameters(item),
                    docstring=ast.get_docstring(item) or "",
                )
            )
    return descriptor


def _collect_imports(tree: ast.Module) -> list[str]:
    """Module names imported anywhere in the tree, in first-seen order."""
    names: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.module == "__future__":
                continue  # Compiler directive, not a dependency
            prefix = "." * (node.level or 0)
            if node.module:
                names.append(prefix + node.module)
            else:
                names.extend(prefix + alias.name for alias in node.names)
    return list(dict.fromkeys(names))


def _find_client_class(tree: ast.Module) -> ast.ClassDef | None:
    """The public class with an ``__init__``, preferring one named ``*Client``."""
    candidates = [
        node
        for node in tree.body
        if isinstance(node, ast.ClassDef)
        and not node.name.startswith("_")
        and any(isinstance(i, ast.FunctionDef) and i.name == "__init__" for i in node.body)
    ]
    for node in candidates:
        if node.name.endswith("Client"):
            return node
    return candidates[0] if candidates else None


def _parse_parameters(node: ast.FunctionDef | ast.AsyncFunctionDef) -> list[ParameterSpec]:
    """Parameters after the receiver, with literal defaults where available."""
    args = node.args
    positional = args.posonlyargs + args.args
    if positional and positional[0].arg in ("self", "cls"):
        positional = positional[1:]

    # Defaults align with the tail of the positional list
    defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
    params = [_param(arg, default) for arg, default in zip(positional, defaults)]
    params.extend(_param(arg, default) for arg, default in zip(args.kwonlyargs, args.kw_defaults))
    return params


def _param(arg: ast.arg, default: ast.expr | None) -> ParameterSpec:
    if default is None:
        return ParameterSpec(name=arg.arg)
    if isinstance(default, ast.Constant) and isinstance(default.value, str):
        value = default.value
    else:
        value = ast.unparse(default)
    return ParameterSpec(name=arg.arg, default_value=value, required=False)
