from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Tuple, TypeAlias
import tomllib

DEFAULT_CONFIG_NAME = "argtrim.toml"
DEFAULT_MAX_PASSES = 1

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        config_path = (root if root is not None else Path.cwd()) / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def rewrite_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    section = load_config(root=root, config_path=config_path).get("rewrite", {})
    return section if isinstance(section, dict) else {}


def _split_names(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _normalize_name_list(value: TomlValue) -> list[str]:
    """Names from a list of strings or a comma separated string."""
    if isinstance(value, str):
        return _split_names(value)
    if not isinstance(value, (list, tuple, set)):
        return []
    return [name for item in value if isinstance(item, str) for name in _split_names(item)]


def _as_bool(value: TomlValue, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _as_positive_int(value: TomlValue, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value >= 1 else default
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed >= 1 else default
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    """Overlay ``payload`` on ``defaults``; ``None`` means "not given"."""
    return {**defaults, **{key: value for key, value in payload.items() if value is not None}}


@dataclass(frozen=True)
class RewriteSettings:
    """Settings for one run.

    List, dict and set defaults never match unless
    ``strict_mutable_defaults`` is turned off.
    """

    exclude: Tuple[str, ...] = ()
    builtins: Tuple[str, ...] = ()
    max_passes: int = DEFAULT_MAX_PASSES
    strict_mutable_defaults: bool = True
    resolve_imports: bool = True

    @classmethod
    def from_section(cls, section: TomlTable | None) -> RewriteSettings:
        if not isinstance(section, dict):
            return cls()
        return cls(
            exclude=tuple(_normalize_name_list(section.get("exclude"))),
            builtins=tuple(_normalize_name_list(section.get("builtins"))),
            max_passes=_as_positive_int(section.get("max_passes"), DEFAULT_MAX_PASSES),
            strict_mutable_defaults=_as_bool(
                section.get("strict_mutable_defaults"), default=True
            ),
            resolve_imports=_as_bool(section.get("resolve_imports"), default=True),
        )


def load_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    overrides: TomlTable | None = None,
) -> RewriteSettings:
    section = rewrite_defaults(root=root, config_path=config_path)
    if overrides:
        section = merge_payload(overrides, section)
    return RewriteSettings.from_section(section)
