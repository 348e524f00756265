"""Source-to-source expansion of every `@power_state` declaration in a module."""
from __future__ import annotations

import ast
import copy
import logging
import textwrap
from typing import Optional

from powerseq.core.expand.expand_config import DEFAULT_CONFIG, ExpandConfig
from powerseq.core.expand.expand_decl import expand_declaration
from powerseq.core.io.load_source import declaration_from_node, parse_module
from powerseq.core.model import (
    MARKER_NAME,
    ExpansionTriple,
    FunctionNode,
    OperationDeclaration,
    decorator_name,
    is_marked,
)

logger = logging.getLogger(__name__)


def expand_module_tree(
    module: ast.Module,
    *,
    config: ExpandConfig = DEFAULT_CONFIG,
    file: Optional[str] = None,
) -> tuple[ast.Module, list[tuple[str, ExpansionTriple]]]:
    """Return a new module with each marked declaration replaced by its triple.

    The input module is not modified. Also returns the (scope, triple) pairs in
    source order.
    """
    out = copy.deepcopy(module)
    triples: list[tuple[str, ExpansionTriple]] = []

    def expand_body(body: list[ast.stmt], scope: str) -> list[ast.stmt]:
        new_body: list[ast.stmt] = []
        for stmt in body:
            if is_marked(stmt):
                decl = declaration_from_node(stmt, file=file)  # type: ignore[arg-type]
                triple = expand_declaration(decl, config)
                triples.append((scope, triple))
                new_body.extend(d.node for d in triple)
                continue
            if isinstance(stmt, ast.ClassDef):
                inner = f"{scope}.{stmt.name}" if scope else stmt.name
                stmt.body = expand_body(stmt.body, inner)
            new_body.append(stmt)
        return new_body

    out.body = expand_body(out.body, "")
    ast.fix_missing_locations(out)
    logger.debug("expanded %d declaration(s) in %s", len(triples), file or "<source>")
    return out, triples


def expand_module_triples(
    text: str,
    *,
    config: ExpandConfig = DEFAULT_CONFIG,
    file: Optional[str] = None,
) -> list[tuple[str, ExpansionTriple]]:
    _, triples = expand_module_tree(parse_module(text, file=file), config=config, file=file)
    return triples


def expand_module_source(
    text: str,
    *,
    config: ExpandConfig = DEFAULT_CONFIG,
    file: Optional[str] = None,
) -> str:
    """Expand a module's source text in place.

    Only the lines of each marked declaration are replaced; every other line,
    comments included, is kept byte for byte.
    """
    out, _ = splice_module_source(text, parse_module(text, file=file), config=config, file=file)
    return out


def splice_module_source(
    text: str,
    module: ast.Module,
    *,
    config: ExpandConfig = DEFAULT_CONFIG,
    file: Optional[str] = None,
) -> tuple[str, list[tuple[str, ExpansionTriple]]]:
    """Replace the lines of each marked declaration with its rendered triple.

    The original member keeps its own source lines (comments included) minus
    the marker decorator. Hooks are rendered from the tree at the
    declaration's indentation.
    """
    lines = text.splitlines(keepends=True)
    triples: list[tuple[str, ExpansionTriple]] = []
    edits: list[tuple[int, int, str]] = []

    for scope, node in _marked_nodes(module):
        triple = expand_declaration(declaration_from_node(node, file=file), config)
        triples.append((scope, triple))

        start = min([node.lineno] + [d.lineno for d in node.decorator_list])
        end = node.end_lineno or node.lineno
        def_line = lines[node.lineno - 1]
        indent = def_line[: len(def_line) - len(def_line.lstrip())]

        marker_lines: set[int] = set()
        for d in node.decorator_list:
            if decorator_name(d) == MARKER_NAME:
                marker_lines.update(range(d.lineno, (d.end_lineno or d.lineno) + 1))
        original = [lines[i - 1] for i in range(start, end + 1) if i not in marker_lines]
        if not original[-1].endswith("\n"):
            original[-1] += "\n"

        segment = [_render_at(triple.pre, indent), "\n", *original, "\n", _render_at(triple.post, indent)]
        edits.append((start, end, "".join(segment)))

    # Marked declarations never nest, so edits are disjoint; apply bottom-up.
    for start, end, segment in reversed(edits):
        lines[start - 1 : end] = [segment]

    logger.debug("spliced %d declaration(s) into %s", len(triples), file or "<source>")
    return "".join(lines), triples


def _marked_nodes(module: ast.Module) -> list[tuple[str, FunctionNode]]:
    out: list[tuple[str, FunctionNode]] = []

    def walk(body: list[ast.stmt], scope: str) -> None:
        for stmt in body:
            if is_marked(stmt):
                out.append((scope, stmt))  # type: ignore[arg-type]
            elif isinstance(stmt, ast.ClassDef):
                walk(stmt.body, f"{scope}.{stmt.name}" if scope else stmt.name)

    walk(module.body, "")
    return out


def _render_at(decl: OperationDeclaration, indent: str) -> str:
    return textwrap.indent(ast.unparse(decl.node) + "\n", indent)
