from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from powerseq.core.model import STRATEGIES, Strategy


@dataclass(frozen=True)
class ExpandConfig:
    strategy: Strategy = "rewrite"
    # Bare calls with these exact names build a success value and are never renamed.
    success_names: tuple[str, ...] = field(default=("Ok",))

    @property
    def whitelist(self) -> frozenset[str]:
        return frozenset(self.success_names)

    def to_dict(self) -> dict[str, Any]:
        return {"strategy": self.strategy, "success_names": list(self.success_names)}


DEFAULT_CONFIG = ExpandConfig()


class ExpandConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load expansion overrides from a YAML file.

    Format:
      strategy: rewrite | stub
      success_names: ["Ok", ...]

    Both keys are optional. Returns only the keys present in the file.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ExpandConfigError(f"invalid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ExpandConfigError("config file must be a mapping")

    unknown = sorted(str(k) for k in raw if k not in ("strategy", "success_names"))
    if unknown:
        raise ExpandConfigError(f"unknown config keys: {', '.join(unknown)}")

    out: dict[str, Any] = {}
    if "strategy" in raw:
        strategy = raw["strategy"]
        if strategy not in STRATEGIES:
            raise ExpandConfigError(
                f"strategy must be one of: {', '.join(STRATEGIES)} (got {strategy!r})"
            )
        out["strategy"] = strategy

    if "success_names" in raw:
        names = raw["success_names"]
        if not isinstance(names, list) or not names:
            raise ExpandConfigError("success_names must be a non-empty list")
        clean: list[str] = []
        for item in names:
            if not isinstance(item, str) or not item.strip():
                raise ExpandConfigError("success_names items must be non-empty strings")
            clean.append(item.strip())
        out["success_names"] = tuple(clean)
    return out


def merged_config(overrides: Optional[dict[str, Any]] = None) -> ExpandConfig:
    """Return DEFAULT_CONFIG with optional overrides applied key by key."""
    if not overrides:
        return DEFAULT_CONFIG
    return replace(DEFAULT_CONFIG, **overrides)


def load_and_merge(config_file: str | None) -> ExpandConfig:
    if not config_file:
        return merged_config()
    return merged_config(load_config_file(config_file))
