"""Runtime side of the expansion: markers and the class decorator.

`@power_state` marks a lifecycle operation. `@power_sequence` reads the source
of every marked method of a class, expands it and compiles the generated
`pre_*`/`post_*` hooks into the class.
"""
from __future__ import annotations

import __future__
import ast
import copy
import inspect
import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from powerseq.core.errors import ExpansionError
from powerseq.core.expand.expand_config import DEFAULT_CONFIG, ExpandConfig
from powerseq.core.expand.expand_decl import expand_declaration
from powerseq.core.io.load_source import parse_declaration
from powerseq.core.model import HOOK_PREFIXES, OperationDeclaration, Strategy

logger = logging.getLogger(__name__)

F = TypeVar("F")
C = TypeVar("C", bound=type)

MARK_ATTR = "__power_state__"


def power_state(fn: F) -> F:
    """Mark a lifecycle operation for expansion into pre/op/post."""
    target = fn.__func__ if isinstance(fn, (staticmethod, classmethod)) else fn
    setattr(target, MARK_ATTR, True)
    return fn


def hook_names(name: str) -> tuple[str, str]:
    return f"{HOOK_PREFIXES['pre']}{name}", f"{HOOK_PREFIXES['post']}{name}"


def power_sequence(
    cls: Optional[C] = None,
    *,
    strategy: Strategy = "rewrite",
    success_names: Optional[Iterable[str]] = None,
) -> Any:
    """Class decorator attaching generated hooks for every marked method.

    Hooks the class body already defines are left alone. Usable bare
    (`@power_sequence`) or with options (`@power_sequence(strategy="stub")`).
    """
    config = ExpandConfig(
        strategy=strategy,
        success_names=tuple(success_names) if success_names is not None else DEFAULT_CONFIG.success_names,
    )

    def wrap(klass: C) -> C:
        own = vars(klass)
        for value in list(own.values()):
            fn = _marked_function(value)
            if fn is None:
                continue
            triple = expand_declaration(_declaration_of(fn), config)
            for hook in (triple.pre, triple.post):
                if hook.name in own:
                    logger.debug("%s.%s defined explicitly; not generated", klass.__qualname__, hook.name)
                    continue
                setattr(klass, hook.name, _compile_hook(hook, fn, klass))
                logger.debug("attached %s.%s", klass.__qualname__, hook.name)
        return klass

    if cls is None:
        return wrap
    return wrap(cls)


def _marked_function(value: Any) -> Optional[Callable[..., Any]]:
    fn = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
    if inspect.isfunction(fn) and getattr(fn, MARK_ATTR, False):
        return fn
    return None


def _declaration_of(fn: Callable[..., Any]) -> OperationDeclaration:
    try:
        lines, _ = inspect.getsourcelines(fn)
        file = inspect.getsourcefile(fn)
    except (OSError, TypeError) as e:
        raise ExpansionError(
            code="E_SOURCE_UNAVAILABLE",
            message=f"cannot read source of {fn.__qualname__}: {e}",
            path=fn.__qualname__,
        ) from e
    return parse_declaration(_dedent(lines), file=file)


def _dedent(lines: list[str]) -> str:
    first = lines[0]
    indent = len(first) - len(first.lstrip())
    out: list[str] = []
    for line in lines:
        # Continuation lines of multi-line strings may sit left of the def.
        out.append(line[indent:] if line[:indent].strip() == "" else line)
    return "".join(out)


def _compile_hook(hook: OperationDeclaration, fn: Callable[..., Any], owner: type) -> Any:
    node = copy.deepcopy(hook.node)
    ast.increment_lineno(node, fn.__code__.co_firstlineno - 1)
    module = ast.Module(body=[node], type_ignores=[])

    flags = 0
    if fn.__globals__.get("annotations") is __future__.annotations:
        flags |= __future__.annotations.compiler_flag

    code = compile(module, fn.__code__.co_filename, "exec", flags=flags, dont_inherit=True)
    namespace: dict[str, Any] = {}
    # Executing the def applies decorators, defaults and annotations.
    exec(code, _globals_for(fn), namespace)

    value = namespace[hook.name]
    target = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
    target.__qualname__ = f"{owner.__qualname__}.{hook.name}"
    target.__module__ = owner.__module__
    return value


def _globals_for(fn: Callable[..., Any]) -> dict[str, Any]:
    """Module globals, plus captured variables when the method is a closure."""
    if not fn.__closure__:
        return fn.__globals__
    merged = dict(fn.__globals__)
    for name, cell in zip(fn.__code__.co_freevars, fn.__closure__):
        try:
            merged[name] = cell.cell_contents
        except ValueError:
            # Not bound yet in the enclosing scope.
            continue
    return merged
