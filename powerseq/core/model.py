from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Literal, NamedTuple, Optional, Union


Strategy = Literal["rewrite", "stub"]
HookRole = Literal["pre", "post"]
ParameterKind = Literal[
    "positional_only",
    "positional_or_keyword",
    "var_positional",
    "keyword_only",
    "var_keyword",
]

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

STRATEGIES: tuple[str, ...] = ("rewrite", "stub")
HOOK_PREFIXES: dict[str, str] = {"pre": "pre_", "post": "post_"}

MARKER_NAME = "power_state"
ABSTRACT_NAMES: frozenset[str] = frozenset({"abstractmethod"})


def decorator_name(expr: ast.expr) -> Optional[str]:
    """Return the trailing name of a decorator expression (`x`, `a.b.x`, `x(...)`)."""
    if isinstance(expr, ast.Call):
        expr = expr.func
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return None


def is_marked(node: ast.AST) -> bool:
    if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return False
    return any(decorator_name(d) == MARKER_NAME for d in node.decorator_list)


def _is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def _is_ellipsis(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and stmt.value.value is Ellipsis
    )


def _unparse(node: Optional[ast.AST]) -> Optional[str]:
    return ast.unparse(node) if node is not None else None


@dataclass(frozen=True)
class Parameter:
    name: str
    annotation: Optional[str]
    default: Optional[str]
    kind: ParameterKind


@dataclass(frozen=True)
class OperationDeclaration:
    """One lifecycle operation declaration backed by a Python function node.

    The node is treated as immutable input. Anything that rewrites a
    declaration works on `copy.deepcopy(decl.node)`.
    """

    node: FunctionNode
    file: Optional[str] = None

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def is_async(self) -> bool:
        return isinstance(self.node, ast.AsyncFunctionDef)

    @property
    def is_abstract(self) -> bool:
        return any(decorator_name(d) in ABSTRACT_NAMES for d in self.node.decorator_list)

    @property
    def return_type(self) -> Optional[str]:
        return _unparse(self.node.returns)

    @property
    def parameters(self) -> tuple[Parameter, ...]:
        args = self.node.args
        out: list[Parameter] = []

        positional = list(args.posonlyargs) + list(args.args)
        # Defaults align with the tail of the positional parameters.
        pad = len(positional) - len(args.defaults)
        defaults: list[Optional[ast.expr]] = [None] * pad + list(args.defaults)
        for i, a in enumerate(positional):
            kind: ParameterKind = (
                "positional_only" if i < len(args.posonlyargs) else "positional_or_keyword"
            )
            out.append(Parameter(a.arg, _unparse(a.annotation), _unparse(defaults[i]), kind))

        if args.vararg is not None:
            out.append(
                Parameter(args.vararg.arg, _unparse(args.vararg.annotation), None, "var_positional")
            )
        for a, d in zip(args.kwonlyargs, args.kw_defaults):
            out.append(Parameter(a.arg, _unparse(a.annotation), _unparse(d), "keyword_only"))
        if args.kwarg is not None:
            out.append(
                Parameter(args.kwarg.arg, _unparse(args.kwarg.annotation), None, "var_keyword")
            )
        return tuple(out)

    @property
    def docstring(self) -> Optional[str]:
        return ast.get_docstring(self.node)

    @property
    def body(self) -> Optional[list[ast.stmt]]:
        """Statements after the docstring, or None when there is no default body.

        Abstract declarations and bodies made only of a docstring and/or `...`
        have no default body.
        """
        if self.is_abstract:
            return None
        stmts = list(self.node.body)
        if stmts and _is_docstring(stmts[0]):
            stmts = stmts[1:]
        if not stmts or all(_is_ellipsis(s) for s in stmts):
            return None
        return stmts

    @property
    def has_default_body(self) -> bool:
        return self.body is not None


@dataclass(frozen=True)
class RenamePlan:
    prefix: str
    whitelist: frozenset[str]

    def __post_init__(self) -> None:
        if self.prefix not in HOOK_PREFIXES.values():
            raise ValueError(f"prefix must be one of {sorted(HOOK_PREFIXES.values())}, got {self.prefix!r}")

    @classmethod
    def for_role(cls, role: HookRole, whitelist: frozenset[str] | set[str] = frozenset()) -> RenamePlan:
        return cls(prefix=HOOK_PREFIXES[role], whitelist=frozenset(whitelist))

    def rename(self, name: str) -> str:
        return f"{self.prefix}{name}"


class ExpansionTriple(NamedTuple):
    pre: OperationDeclaration
    original: OperationDeclaration
    post: OperationDeclaration
