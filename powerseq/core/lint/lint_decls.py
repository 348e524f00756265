from __future__ import annotations

import ast
from collections import Counter
from typing import Optional

from powerseq.core.errors import DeclarationLintError
from powerseq.core.expand.expand_config import DEFAULT_CONFIG, ExpandConfig
from powerseq.core.model import HOOK_PREFIXES, OperationDeclaration, is_marked


# Declaration lint rules:
# - L_DUPLICATE_OPERATION: same marked name twice in one scope
# - L_PREFIXED_OPERATION: marked name already carries a hook prefix (double expansion)
# - L_HOOK_COLLISION: the scope already defines pre_<name> or post_<name>
# - L_BARE_CALL_RENAMED: a bare call that the rewrite renames but is not a sibling operation
# - L_SYNC_OPERATION: marked declaration is not async


def lint_module(
    module: ast.Module,
    *,
    config: ExpandConfig = DEFAULT_CONFIG,
    file: Optional[str] = None,
) -> list[DeclarationLintError]:
    """Lint every scope of a module.

    Never raises for shape problems; findings are returned so the CLI can
    print them together.
    """
    errors: list[DeclarationLintError] = []

    def walk(body: list[ast.stmt], scope: str) -> None:
        errors.extend(_lint_scope(body, scope, config=config, file=file))
        for stmt in body:
            if isinstance(stmt, ast.ClassDef):
                walk(stmt.body, f"{scope}.{stmt.name}" if scope else stmt.name)

    walk(module.body, "")
    return errors


def _lint_scope(
    body: list[ast.stmt],
    scope: str,
    *,
    config: ExpandConfig,
    file: Optional[str],
) -> list[DeclarationLintError]:
    marked = [s for s in body if is_marked(s)]
    if not marked:
        return []

    def loc(name: str) -> str:
        return f"{scope}.{name}" if scope else name

    errors: list[DeclarationLintError] = []
    names = [s.name for s in marked]  # type: ignore[attr-defined]
    siblings = set(names)
    defined = {
        s.name
        for s in body
        if isinstance(s, (ast.FunctionDef, ast.AsyncFunctionDef)) and not is_marked(s)
    }

    # Rule: duplicate operations
    counts = Counter(names)
    seen: set[str] = set()
    for name in names:
        if counts[name] > 1 and name in seen:
            errors.append(
                DeclarationLintError(
                    code="L_DUPLICATE_OPERATION",
                    message=f"operation declared more than once: {name} (count={counts[name]})",
                    file=file,
                    path=loc(name),
                )
            )
        seen.add(name)

    for stmt in marked:
        decl = OperationDeclaration(stmt, file=file)  # type: ignore[arg-type]
        name = decl.name

        # Rule: double expansion is unsupported
        for prefix in HOOK_PREFIXES.values():
            if name.startswith(prefix):
                errors.append(
                    DeclarationLintError(
                        code="L_PREFIXED_OPERATION",
                        message=f"operation name already starts with {prefix!r}; expanding it again is unsupported",
                        file=file,
                        path=loc(name),
                    )
                )
                break

        # Rule: generated hooks would collide with explicit definitions
        for prefix in HOOK_PREFIXES.values():
            hook = f"{prefix}{name}"
            if hook in defined:
                errors.append(
                    DeclarationLintError(
                        code="L_HOOK_COLLISION",
                        message=f"{hook} is defined explicitly and would be replaced by the generated hook",
                        file=file,
                        path=loc(hook),
                    )
                )

        # Rule: operations are async
        if not decl.is_async:
            errors.append(
                DeclarationLintError(
                    code="L_SYNC_OPERATION",
                    message="lifecycle operations must be declared with async def",
                    file=file,
                    path=loc(name),
                )
            )

        # Rule: bare calls renamed by name only
        if config.strategy == "rewrite" and decl.body is not None:
            for call_name in _bare_calls(decl.body):
                if call_name in config.whitelist or call_name in siblings:
                    continue
                errors.append(
                    DeclarationLintError(
                        code="L_BARE_CALL_RENAMED",
                        message=(
                            f"bare call {call_name}() is not a sibling operation but hooks will call "
                            f"pre_{call_name}()/post_{call_name}()"
                        ),
                        file=file,
                        path=loc(name),
                    )
                )

    return errors


def _bare_calls(body: list[ast.stmt]) -> list[str]:
    out: list[str] = []
    for stmt in body:
        for node in ast.walk(stmt):
            if isinstance(node, ast.Call) and isinstance(node.func, ast.Name):
                if node.func.id not in out:
                    out.append(node.func.id)
    return out
