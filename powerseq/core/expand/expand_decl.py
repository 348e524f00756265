"""Expansion engine: one lifecycle declaration in, `(pre, original, post)` out.

Two strategies exist for the hook bodies:

- rewrite (canonical): the default body is deep-copied and every call site in
  it is renamed to the same-role hook. `await self.power_off()` inside
  `hibernate` becomes `await self.pre_power_off()` in `pre_hibernate`.
- stub (legacy): hook bodies are `return None` whatever the default body does.

The two are not equivalent. If `power_off` raises, a rewritten
`pre_hibernate` raises too, while the stub `pre_hibernate` always succeeds.
"""
from __future__ import annotations

import ast
import copy
import logging

from powerseq.core.errors import ExpansionError
from powerseq.core.expand.expand_config import DEFAULT_CONFIG, ExpandConfig
from powerseq.core.model import (
    ABSTRACT_NAMES,
    MARKER_NAME,
    STRATEGIES,
    ExpansionTriple,
    FunctionNode,
    OperationDeclaration,
    RenamePlan,
    decorator_name,
)

logger = logging.getLogger(__name__)

# Hooks are always concrete and never re-trigger expansion.
_DROPPED_DECORATORS: frozenset[str] = ABSTRACT_NAMES | {MARKER_NAME}


class CallRenamer(ast.NodeTransformer):
    """Depth-first rename of every call site under a node.

    Receiver-qualified calls (`x.name(...)`, including dotted free calls such
    as `T.name(self)`) are always renamed. Bare calls (`name(...)`) are renamed
    unless the name is whitelisted. Matching is by name only.
    """

    def __init__(self, plan: RenamePlan) -> None:
        self.plan = plan
        self.renamed = 0

    def visit_Call(self, node: ast.Call) -> ast.AST:
        # Arguments, nested call targets and chained receivers first.
        self.generic_visit(node)
        func = node.func
        if isinstance(func, ast.Attribute):
            func.attr = self.plan.rename(func.attr)
            self.renamed += 1
        elif isinstance(func, ast.Name) and func.id not in self.plan.whitelist:
            func.id = self.plan.rename(func.id)
            self.renamed += 1
        return node


def trivial_success() -> ast.stmt:
    return ast.Return(value=ast.Constant(value=None))


def _hook_docstring(plan: RenamePlan, name: str) -> ast.stmt:
    when = "before" if plan.prefix == "pre_" else "after"
    return ast.Expr(value=ast.Constant(value=f"Hook run {when} :meth:`{name}`."))


def _hook_shell(decl: OperationDeclaration, plan: RenamePlan) -> tuple[FunctionNode, list[ast.stmt] | None]:
    node = copy.deepcopy(decl.node)
    # Read the body from the copy so rewriting never touches the input.
    body = OperationDeclaration(node).body
    node.name = plan.rename(decl.name)
    node.decorator_list = [
        d for d in node.decorator_list if decorator_name(d) not in _DROPPED_DECORATORS
    ]
    return node, body


def _finish(node: FunctionNode, decl: OperationDeclaration, plan: RenamePlan, stmts: list[ast.stmt]) -> OperationDeclaration:
    node.body = [_hook_docstring(plan, decl.name)] + stmts
    ast.fix_missing_locations(node)
    return OperationDeclaration(node, file=decl.file)


def rewrite_hook(decl: OperationDeclaration, plan: RenamePlan) -> OperationDeclaration:
    """Build a hook whose body is the default body with every call renamed by `plan`."""
    node, body = _hook_shell(decl, plan)
    if body is None:
        return _finish(node, decl, plan, [trivial_success()])

    renamer = CallRenamer(plan)
    stmts = [renamer.visit(s) for s in body]
    logger.debug("renamed %d call site(s) in %s", renamer.renamed, node.name)
    return _finish(node, decl, plan, stmts)


def stub_hook(decl: OperationDeclaration, plan: RenamePlan) -> OperationDeclaration:
    """Build a hook that returns success without looking at the default body."""
    node, _ = _hook_shell(decl, plan)
    return _finish(node, decl, plan, [trivial_success()])


def expand_declaration(
    decl: OperationDeclaration,
    config: ExpandConfig = DEFAULT_CONFIG,
) -> ExpansionTriple:
    """Expand one declaration into `(pre, original, post)`.

    The original member is the input object itself. Each call builds fresh
    hooks; nothing is cached between calls.
    """
    if not isinstance(decl.node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise ExpansionError(
            code="E_EXPAND_NOT_A_FUNCTION",
            message=f"expected a function declaration, got {type(decl.node).__name__}",
            file=decl.file,
        )
    if config.strategy not in STRATEGIES:
        raise ExpansionError(
            code="E_EXPAND_UNKNOWN_STRATEGY",
            message=f"unknown strategy: {config.strategy} (choose one of: {', '.join(STRATEGIES)})",
            file=decl.file,
            path=decl.name,
        )

    build = rewrite_hook if config.strategy == "rewrite" else stub_hook
    pre = build(decl, RenamePlan.for_role("pre", config.whitelist))
    post = build(decl, RenamePlan.for_role("post", config.whitelist))
    logger.debug("expanded %s (strategy=%s)", decl.name, config.strategy)
    return ExpansionTriple(pre=pre, original=decl, post=post)
