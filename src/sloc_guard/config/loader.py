"""Configuration loading and merging for sloc-guard.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined on the dataclasses in models.py)
    2. User config (~/.config/sloc-guard/config.toml)
    3. Project config (.sloc-guard.toml at the project root), or an
       explicit config file when one is given
    4. Environment variables (SLOC_GUARD_* prefix, [content] scalars)
    5. CLI overrides (passed as kwargs)

Each file may ``extends`` a preset (``preset:<name>``) or another file.
Tables merge key by key with the child winning; arrays append unless the
child array starts with the ``"$reset"`` marker.

Example:
    >>> loaded = load_config(max_lines=300)
    >>> loaded.config.content.max_lines
    300
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, get_type_hints

from ..counting import LanguageDefinition
from ..exceptions import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
    UnsupportedVersionError,
)
from ..logging_config import get_logger
from ._toml import TOMLDecodeError, load_toml_file
from .models import (
    CONFIG_VERSION,
    BaselineConfig,
    CheckConfig,
    ContentConfig,
    ContentOverride,
    ContentRule,
    ScannerConfig,
    SiblingRule,
    SlocGuardConfig,
    StructureConfig,
    StructureOverride,
    StructureRule,
    TrendConfig,
)
from .presets import PRESET_PREFIX, load_preset

logger = get_logger(__name__)

CONFIG_FILENAME = ".sloc-guard.toml"
RESET_MARKER = "$reset"
MAX_EXTENDS_DEPTH = 10
ENV_PREFIX = "SLOC_GUARD_"

TOP_LEVEL_KEYS = frozenset(
    {"version", "extends", "scanner", "content", "structure", "check", "baseline", "trend", "languages"}
)

# CLI override name -> (section, field, mode)
OVERRIDE_KEYS: Dict[str, Tuple[str, str, str]] = {
    "max_lines": ("content", "max_lines", "set"),
    "warn_threshold": ("content", "warn_threshold", "set"),
    "warn_at": ("content", "warn_at", "set"),
    "skip_comments": ("content", "skip_comments", "set"),
    "skip_blank": ("content", "skip_blank", "set"),
    "extensions": ("content", "extensions", "set"),
    "exclude": ("scanner", "exclude", "append"),
    "gitignore": ("scanner", "gitignore", "set"),
    "max_files": ("structure", "max_files", "set"),
    "max_dirs": ("structure", "max_dirs", "set"),
    "max_depth": ("structure", "max_depth", "set"),
    "warnings_as_errors": ("check", "warnings_as_errors", "set"),
    "fail_fast": ("check", "fail_fast", "set"),
    "ratchet": ("baseline", "ratchet", "set"),
}


@dataclass
class LoadedConfig:
    """A validated config plus where it came from."""

    config: SlocGuardConfig
    sources: List[str] = field(default_factory=list)
    preset_used: Optional[str] = None


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def is_reset_element(value: Any) -> bool:
    if isinstance(value, str):
        return value == RESET_MARKER
    if isinstance(value, dict):
        marker = value.get("pattern", value.get("scope"))
        return marker == RESET_MARKER
    return False


def merge_values(base: Any, child: Any) -> Any:
    """Merge two raw TOML values; *child* wins."""
    if isinstance(base, dict) and isinstance(child, dict):
        merged = dict(base)
        for key, child_value in child.items():
            if key in merged:
                merged[key] = merge_values(merged[key], child_value)
            else:
                merged[key] = child_value
        return merged
    if isinstance(base, list) and isinstance(child, list):
        if child and is_reset_element(child[0]):
            return list(child[1:])
        return list(base) + list(child)
    return child


def strip_reset_markers(value: Any) -> Any:
    """Drop leftover ``$reset`` markers from configs with nothing to reset."""
    if isinstance(value, dict):
        return {key: strip_reset_markers(v) for key, v in value.items()}
    if isinstance(value, list):
        items = value[1:] if value and is_reset_element(value[0]) else value
        for item in items:
            if is_reset_element(item):
                raise InvalidConfigError("$reset", RESET_MARKER, "must be the first array element")
        return [strip_reset_markers(item) for item in items]
    return value


# ---------------------------------------------------------------------------
# File loading and extends
# ---------------------------------------------------------------------------


def user_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "sloc-guard" / "config.toml"


def discover_config_file(start: Path) -> Optional[Path]:
    """Find ``.sloc-guard.toml`` in *start* or its ancestors, up to the git root."""
    try:
        current = start.resolve()
    except OSError:
        current = start
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (directory / ".git").exists():
            break
    return None


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        raw = load_toml_file(path)
    except FileNotFoundError:
        raise ConfigFileError(path, "file not found")
    except TOMLDecodeError as e:
        raise ConfigFileError(path, f"invalid TOML: {e}")
    except OSError as e:
        raise ConfigFileError(path, f"cannot read: {e}")
    _check_version(raw, str(path))
    return raw


def _check_version(raw: Dict[str, Any], origin: str) -> None:
    version = raw.get("version")
    if version is not None and str(version) != CONFIG_VERSION:
        raise UnsupportedVersionError(f"config ({origin})", version, CONFIG_VERSION)


def _resolve_extends(
    raw: Dict[str, Any], origin_dir: Path, chain: List[str], no_extends: bool
) -> Tuple[Dict[str, Any], Optional[str]]:
    raw = dict(raw)
    extends = raw.pop("extends", None)
    if extends is None or no_extends:
        return raw, None
    if not isinstance(extends, str) or not extends.strip():
        raise InvalidConfigError("extends", extends, "must be a preset name or file path")
    if len(chain) >= MAX_EXTENDS_DEPTH:
        raise ConfigFileError(Path(chain[-1]), f"extends chain deeper than {MAX_EXTENDS_DEPTH}")

    preset_used: Optional[str] = None
    if extends.startswith(PRESET_PREFIX):
        name = extends[len(PRESET_PREFIX):]
        key = extends
        if key in chain:
            raise ConfigFileError(Path(key), "extends cycle detected")
        parent = load_preset(name)
        _check_version(parent, key)
        parent_dir = origin_dir
        preset_used = name
    elif extends.startswith(("http://", "https://")):
        raise InvalidConfigError("extends", extends, "remote configurations are not supported")
    else:
        parent_path = (origin_dir / extends).resolve()
        key = str(parent_path)
        if key in chain:
            raise ConfigFileError(parent_path, "extends cycle detected")
        parent = _read_file(parent_path)
        parent_dir = parent_path.parent

    logger.debug(f"Config extends {extends}")
    parent, inner_preset = _resolve_extends(parent, parent_dir, chain + [key], no_extends)
    return merge_values(parent, raw), preset_used or inner_preset


def load_raw_file(path: Path, no_extends: bool = False) -> Tuple[Dict[str, Any], Optional[str]]:
    """Read one config file and fold its extends chain into it."""
    path = Path(path)
    raw = _read_file(path)
    return _resolve_extends(raw, path.resolve().parent, [str(path.resolve())], no_extends)


# ---------------------------------------------------------------------------
# Environment and CLI overrides
# ---------------------------------------------------------------------------


def _load_env_vars() -> Dict[str, Any]:
    """Load [content] scalars from SLOC_GUARD_* environment variables.

    Supported environment variables:
        SLOC_GUARD_MAX_LINES: int
        SLOC_GUARD_WARN_THRESHOLD: float
        SLOC_GUARD_WARN_AT: int
        SLOC_GUARD_SKIP_COMMENTS: bool (true/false/1/0)
        SLOC_GUARD_SKIP_BLANK: bool

    Returns:
        Dict of field_name -> parsed_value for any variables found.
    """
    type_hints = get_type_hints(ContentConfig)
    result: Dict[str, Any] = {}

    for field_name in ("max_lines", "warn_threshold", "warn_at", "skip_comments", "skip_blank"):
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            parsed = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type."""
    origin = getattr(type_hint, "__origin__", None)
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint is int:
        return int(value)
    if type_hint is float:
        return float(value)
    if type_hint is str or origin is Literal:
        return value
    return None


def apply_overrides(raw: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Apply CLI-style overrides to a raw config table. ``None`` means unset."""
    raw = copy.deepcopy(raw)
    for name, value in overrides.items():
        if value is None:
            continue
        if name not in OVERRIDE_KEYS:
            raise InvalidConfigError(name, value, "unknown override")
        section, key, mode = OVERRIDE_KEYS[name]
        table = raw.setdefault(section, {})
        if mode == "append":
            table[key] = list(table.get(key, [".git/**"] if section == "scanner" else [])) + list(value)
        else:
            table[key] = value
    return raw


# ---------------------------------------------------------------------------
# Building the typed model
# ---------------------------------------------------------------------------


def _expect_table(value: Any, key: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidConfigError(key, value, "expected a table")
    return value


def _expect_list(value: Any, key: str) -> list:
    if not isinstance(value, list):
        raise InvalidConfigError(key, value, "expected an array")
    return value


def _construct(cls, table: Dict[str, Any], key: str):
    try:
        return cls(**table)
    except ConfigurationError:
        raise
    except TypeError as e:
        raise InvalidConfigError(key, sorted(table), f"unknown or missing field: {e}")
    except ValueError as e:
        raise InvalidConfigError(key, "", str(e))


def _build_sibling(table: Dict[str, Any], key: str) -> SiblingRule:
    table = dict(_expect_table(table, key))
    has_directed = "match" in table or "require" in table
    has_group = "group" in table
    if has_directed and has_group:
        raise InvalidConfigError(key, sorted(table), "ambiguous sibling rule: use match/require or group")
    if not has_directed and not has_group:
        raise InvalidConfigError(key, sorted(table), "sibling rule needs match/require or group")
    severity = table.pop("severity", "error")
    if has_group:
        group = table.pop("group")
        if table:
            raise InvalidConfigError(key, sorted(table), "unknown field")
        return _construct(SiblingRule, {"kind": "group", "group": tuple(_expect_list(group, key)), "severity": severity}, key)
    require = table.pop("require", None)
    match = table.pop("match", None)
    if table:
        raise InvalidConfigError(key, sorted(table), "unknown field")
    if match is None:
        raise InvalidConfigError(key, "", "directed sibling rule needs 'match'")
    if require is None:
        raise InvalidConfigError(key, "", "directed sibling rule needs 'require'")
    if isinstance(require, str):
        require = [require]
    return _construct(
        SiblingRule,
        {"kind": "directed", "match": match, "require": tuple(_expect_list(require, key)), "severity": severity},
        key,
    )


def _build_content_rule(table: Dict[str, Any], key: str) -> ContentRule:
    table = dict(_expect_table(table, key))
    if "scope" in table:
        if "pattern" in table:
            raise InvalidConfigError(key, "scope", "use either 'pattern' or 'scope', not both")
        table["pattern"] = table.pop("scope")
    return _construct(ContentRule, table, key)


def _build_structure_rule(table: Dict[str, Any], key: str) -> StructureRule:
    table = dict(_expect_table(table, key))
    siblings = [
        _build_sibling(item, f"{key}.siblings[{i}]")
        for i, item in enumerate(_expect_list(table.pop("siblings", []), f"{key}.siblings"))
    ]
    file_pattern = table.pop("file_pattern", None)
    require_sibling = table.pop("require_sibling", None)
    if (file_pattern is None) != (require_sibling is None):
        raise InvalidConfigError(key, "file_pattern", "file_pattern and require_sibling go together")
    if file_pattern is not None:
        siblings.append(
            _build_sibling({"match": file_pattern, "require": require_sibling}, f"{key}.require_sibling")
        )
    table["siblings"] = siblings
    return _construct(StructureRule, table, key)


def _build_content(table: Dict[str, Any]) -> ContentConfig:
    table = dict(_expect_table(table, "content"))
    table["rules"] = [
        _build_content_rule(item, f"content.rules[{i}]")
        for i, item in enumerate(_expect_list(table.get("rules", []), "content.rules"))
    ]
    table["overrides"] = [
        _construct(ContentOverride, _expect_table(item, f"content.overrides[{i}]"), f"content.overrides[{i}]")
        for i, item in enumerate(_expect_list(table.get("overrides", []), "content.overrides"))
    ]
    return _construct(ContentConfig, table, "content")


def _build_structure(table: Dict[str, Any]) -> StructureConfig:
    table = dict(_expect_table(table, "structure"))
    table["rules"] = [
        _build_structure_rule(item, f"structure.rules[{i}]")
        for i, item in enumerate(_expect_list(table.get("rules", []), "structure.rules"))
    ]
    table["overrides"] = [
        _construct(StructureOverride, _expect_table(item, f"structure.overrides[{i}]"), f"structure.overrides[{i}]")
        for i, item in enumerate(_expect_list(table.get("overrides", []), "structure.overrides"))
    ]
    return _construct(StructureConfig, table, "structure")


def _build_languages(table: Dict[str, Any]) -> List[LanguageDefinition]:
    languages = []
    for name, spec in _expect_table(table, "languages").items():
        key = f"languages.{name}"
        spec = dict(_expect_table(spec, key))
        extensions = _expect_list(spec.pop("extensions", []), f"{key}.extensions")
        line_comment = spec.pop("line_comment", [])
        if isinstance(line_comment, str):
            line_comment = [line_comment]
        blocks = []
        for pair in _expect_list(spec.pop("block_comment", []), f"{key}.block_comment"):
            if not isinstance(pair, list) or len(pair) != 2:
                raise InvalidConfigError(f"{key}.block_comment", pair, "expected [start, end] pairs")
            blocks.append((str(pair[0]), str(pair[1])))
        nested = bool(spec.pop("nested_comments", False))
        strings = spec.pop("string_delimiters", ['"'])
        if spec:
            raise InvalidConfigError(key, sorted(spec), "unknown field")
        languages.append(
            _construct(
                LanguageDefinition,
                {
                    "name": name,
                    "extensions": tuple(str(e).lower().lstrip(".") for e in extensions),
                    "line_comments": tuple(line_comment),
                    "block_comments": tuple(blocks),
                    "string_delimiters": tuple(strings),
                    "nested_comments": nested,
                },
                key,
            )
        )
    return languages


def build_config(raw: Dict[str, Any]) -> SlocGuardConfig:
    """Validate a fully merged raw table into the typed model."""
    unknown = set(raw) - TOP_LEVEL_KEYS
    if unknown:
        raise InvalidConfigError("config", sorted(unknown), "unknown top-level keys")
    _check_version(raw, "merged")

    return SlocGuardConfig(
        version=str(raw.get("version", CONFIG_VERSION)),
        scanner=_construct(ScannerConfig, _expect_table(raw.get("scanner", {}), "scanner"), "scanner"),
        content=_build_content(raw.get("content", {})),
        structure=_build_structure(raw.get("structure", {})),
        check=_construct(CheckConfig, _expect_table(raw.get("check", {}), "check"), "check"),
        baseline=_construct(BaselineConfig, _expect_table(raw.get("baseline", {}), "baseline"), "baseline"),
        trend=_construct(TrendConfig, _expect_table(raw.get("trend", {}), "trend"), "trend"),
        languages=_build_languages(raw.get("languages", {})),
    )


def load_config(
    config_file: Optional[Path] = None,
    start: Optional[Path] = None,
    no_config: bool = False,
    no_extends: bool = False,
    **overrides: Any,
) -> LoadedConfig:
    """Load configuration with discovery, extends and merging.

    Args:
        config_file: Explicit config file; replaces project discovery
        start: Directory to discover the project config from (default: cwd)
        no_config: Ignore every config file and environment variable
        no_extends: Do not follow ``extends``
        **overrides: CLI overrides, see OVERRIDE_KEYS

    Returns:
        LoadedConfig with the validated config and its sources

    Raises:
        ConfigurationError: If any file or value is invalid
    """
    merged: Dict[str, Any] = {}
    sources: List[str] = []
    preset_used: Optional[str] = None

    if not no_config:
        user_config = user_config_path()
        if user_config.is_file():
            raw, preset = load_raw_file(user_config, no_extends)
            merged = merge_values(merged, raw)
            sources.append(str(user_config))
            preset_used = preset or preset_used

        if config_file is not None:
            if not Path(config_file).exists():
                raise ConfigFileError(Path(config_file), "file not found")
            project_config: Optional[Path] = Path(config_file)
        else:
            project_config = discover_config_file(start or Path.cwd())

        if project_config is not None:
            raw, preset = load_raw_file(project_config, no_extends)
            merged = merge_values(merged, raw)
            sources.append(str(project_config))
            preset_used = preset or preset_used

        env_overrides = _load_env_vars()
        if env_overrides:
            content = dict(merged.get("content", {}))
            content.update(env_overrides)
            merged["content"] = content
            sources.append("environment")

    merged = strip_reset_markers(apply_overrides(merged, overrides))
    if any(value is not None for value in overrides.values()):
        sources.append("command line")

    config = build_config(merged)
    logger.debug(f"Loaded config from {', '.join(sources) or 'defaults'}")
    return LoadedConfig(config=config, sources=sources, preset_used=preset_used)
