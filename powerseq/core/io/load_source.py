from __future__ import annotations

import ast
import copy
from pathlib import Path
from typing import Iterator, Optional

from powerseq.core.errors import DeclarationLoadError
from powerseq.core.model import (
    MARKER_NAME,
    ExpansionTriple,
    FunctionNode,
    OperationDeclaration,
    decorator_name,
    is_marked,
)


SUPPORTED_SUFFIXES: set[str] = {".py", ".pyi"}


def load_source(path: str) -> tuple[str, ast.Module]:
    """Read and parse a Python source file.

    Returns (text, module). Does not look for declarations; callers decide
    what a valid shape is.
    """

    p = Path(path)
    if not p.exists():
        raise DeclarationLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    if p.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise DeclarationLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .py and .pyi",
            file=str(p),
        )

    try:
        text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise DeclarationLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    return text, parse_module(text, file=str(p))


def parse_module(text: str, file: Optional[str] = None) -> ast.Module:
    try:
        return ast.parse(text, filename=file or "<source>")
    except SyntaxError as e:
        raise DeclarationLoadError(
            code="E_PY_PARSE",
            message=f"{e.msg} (line {e.lineno})",
            file=file,
        ) from e


def declaration_from_node(node: FunctionNode, file: Optional[str] = None) -> OperationDeclaration:
    """Wrap a function node, consuming the `power_state` marker.

    The marker triggers expansion; it is not part of the declaration.
    """
    node = copy.deepcopy(node)
    node.decorator_list = [d for d in node.decorator_list if decorator_name(d) != MARKER_NAME]
    return OperationDeclaration(node, file=file)


def parse_declaration(source: str, file: Optional[str] = None) -> OperationDeclaration:
    """Parse source holding exactly one top-level function into a declaration."""
    module = parse_module(source, file=file)
    funcs = [s for s in module.body if isinstance(s, (ast.FunctionDef, ast.AsyncFunctionDef))]
    if not funcs:
        raise DeclarationLoadError(
            code="E_DECL_NOT_FOUND",
            message="no function declaration found",
            file=file,
        )
    if len(funcs) > 1 or len(module.body) > 1:
        raise DeclarationLoadError(
            code="E_DECL_AMBIGUOUS",
            message=f"expected exactly one top-level declaration, found {len(module.body)} statements",
            file=file,
        )
    return declaration_from_node(funcs[0], file=file)


def find_marked(module: ast.Module, file: Optional[str] = None) -> Iterator[tuple[str, OperationDeclaration]]:
    """Yield (scope, declaration) for each marked function.

    Marked functions are found at module level and inside class bodies,
    including nested classes. Function bodies are not searched.
    """

    def walk(body: list[ast.stmt], scope: str) -> Iterator[tuple[str, OperationDeclaration]]:
        for stmt in body:
            if is_marked(stmt):
                yield scope, declaration_from_node(stmt, file=file)  # type: ignore[arg-type]
            elif isinstance(stmt, ast.ClassDef):
                inner = f"{scope}.{stmt.name}" if scope else stmt.name
                yield from walk(stmt.body, inner)

    yield from walk(module.body, "")


def render_declaration(decl: OperationDeclaration) -> str:
    return ast.unparse(decl.node)


def render_triple(triple: ExpansionTriple) -> str:
    return "\n\n".join(render_declaration(d) for d in triple)
