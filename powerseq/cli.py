from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from powerseq.core.errors import DeclarationLoadError, PowerSeqError, ExpansionError
from powerseq.core.expand.expand_config import ExpandConfig, ExpandConfigError, load_and_merge
from powerseq.core.expand.expand_module import splice_module_source
from powerseq.core.io.load_source import find_marked, load_source, render_declaration
from powerseq.core.lint.lint_decls import lint_module
from powerseq.core.model import STRATEGIES
from powerseq.hal.markers import hook_names

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Power sequence hook expander."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _load_config(config_file: Optional[str], strategy: Optional[str], file: Optional[str]) -> ExpandConfig:
    try:
        config = load_and_merge(config_file)
    except FileNotFoundError:
        _print_errors(
            [
                DeclarationLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config_file}",
                    file=file,
                    path="config_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except ExpandConfigError as e:
        _print_errors(
            [
                ExpansionError(
                    code="E_CONFIG_FILE_INVALID",
                    message=str(e),
                    file=file,
                    path="config_file",
                )
            ]
        )
        raise typer.Exit(code=2)

    if strategy is None:
        return config
    if strategy not in STRATEGIES:
        _print_errors(
            [
                ExpansionError(
                    code="E_EXPAND_UNKNOWN_STRATEGY",
                    message=f"unknown strategy: {strategy} (choose one of: {', '.join(STRATEGIES)})",
                    file=file,
                    path="strategy",
                )
            ]
        )
        raise typer.Exit(code=2)
    return ExpandConfig(strategy=strategy, success_names=config.success_names)  # type: ignore[arg-type]


@app.command("expand")
def expand(
    path: str = typer.Argument(..., help="Path to a Python source file (.py/.pyi)"),
    out: Optional[str] = typer.Option(None, "--out", help="Write the expanded module here (default: stdout)"),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        help="Hook body strategy: rewrite (default) or stub",
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config-file",
        help="Optional YAML file with strategy/success_names overrides",
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Replace every @power_state declaration with its pre/op/post triple."""
    if format not in ("text", "json"):
        _print_errors(
            [
                ExpansionError(
                    code="E_EXPAND_UNKNOWN_FORMAT",
                    message=f"unknown format: {format} (choose one of: text, json)",
                    file=None,
                    path="format",
                )
            ]
        )
        raise typer.Exit(code=2)

    try:
        text, module = load_source(path)
    except DeclarationLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    config = _load_config(config_file, strategy, path)

    try:
        expanded, triples = splice_module_source(text, module, config=config, file=path)
    except PowerSeqError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    if format == "json":
        payload = {
            "tool": "powerseq",
            "command": "expand",
            "strategy": config.strategy,
            "ok": True,
            "error_count": 0,
            "errors": [],
            "declarations": [
                {
                    "scope": scope,
                    "name": t.original.name,
                    "pre": t.pre.name,
                    "post": t.post.name,
                    "pre_source": render_declaration(t.pre),
                    "source": render_declaration(t.original),
                    "post_source": render_declaration(t.post),
                }
                for scope, t in triples
            ],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if out is None:
        typer.echo(expanded, nl=False)
        return

    _write_text(out, expanded)
    typer.echo(f"OK: wrote expanded module to {out} ({len(triples)} declarations)")


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a Python source file (.py/.pyi)"),
    config_file: Optional[str] = typer.Option(None, "--config-file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint @power_state declarations (collisions, double expansion, name-only renames)."""
    if format not in ("text", "json"):
        _print_errors(
            [
                ExpansionError(
                    code="E_LINT_UNKNOWN_FORMAT",
                    message=f"unknown format: {format} (choose one of: text, json)",
                    file=None,
                    path="format",
                )
            ]
        )
        raise typer.Exit(code=2)

    def _to_item(e: PowerSeqError) -> dict:
        source = "load" if isinstance(e, DeclarationLoadError) else "lint"
        return {
            "code": e.code,
            "message": e.message,
            "file": e.file,
            "path": e.path,
            "severity": "error",
            "source": source,
        }

    def _emit_json(ok: bool, errors: list[PowerSeqError], exit_code: int) -> None:
        payload = {
            "tool": "powerseq",
            "command": "lint",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        _, module = load_source(path)
    except DeclarationLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    config = _load_config(config_file, None, path)
    errors: list[PowerSeqError] = list(lint_module(module, config=config, file=path))

    if format == "json":
        _emit_json(not errors, errors, 2 if errors else 0)

    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)
    typer.echo("OK: lint passed")


@app.command("show")
def show(
    path: str = typer.Argument(..., help="Path to a Python source file (.py/.pyi)"),
    config_file: Optional[str] = typer.Option(None, "--config-file"),
) -> None:
    """List @power_state declarations and the hooks they expand to."""
    try:
        _, module = load_source(path)
    except DeclarationLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    config = _load_config(config_file, None, path)
    typer.echo(f"Strategy: {config.strategy}")

    table = Table(title=f"power states: {path}")
    table.add_column("Scope")
    table.add_column("Operation")
    table.add_column("Hooks")
    table.add_column("Async")
    table.add_column("Default body")

    count = 0
    for scope, decl in find_marked(module, file=path):
        pre, post = hook_names(decl.name)
        table.add_row(
            scope or "<module>",
            decl.name,
            f"{pre}, {post}",
            "yes" if decl.is_async else "no",
            "yes" if decl.has_default_body else "no",
        )
        count += 1

    if count == 0:
        typer.echo("No @power_state declarations found")
        return
    console.print(table)


@app.command("config")
def config_cmd(
    config_file: Optional[str] = typer.Option(
        None,
        "--config-file",
        help="Optional YAML file with strategy/success_names overrides",
    ),
) -> None:
    """Print the effective expansion configuration."""
    config = _load_config(config_file, None, None)
    typer.echo("Config:")
    typer.echo(f"- strategy: {config.strategy}")
    typer.echo(f"- success_names: {', '.join(config.success_names)}")


def _write_text(path: str, text: str) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")


def _print_errors(errors: list[PowerSeqError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="powerseq")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
