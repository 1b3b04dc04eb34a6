"""Configuration: typed model, presets, discovery and merging."""

from .expires import ExpiredRule, collect_expired_rules
from .loader import (
    CONFIG_FILENAME,
    LoadedConfig,
    build_config,
    discover_config_file,
    load_config,
    merge_values,
)
from .models import (
    CONFIG_VERSION,
    UNLIMITED,
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
from .presets import PRESET_PREFIX, available_presets, load_preset

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_VERSION",
    "UNLIMITED",
    "PRESET_PREFIX",
    "BaselineConfig",
    "CheckConfig",
    "ContentConfig",
    "ContentOverride",
    "ContentRule",
    "ExpiredRule",
    "LoadedConfig",
    "ScannerConfig",
    "SiblingRule",
    "SlocGuardConfig",
    "StructureConfig",
    "StructureOverride",
    "StructureRule",
    "TrendConfig",
    "available_presets",
    "build_config",
    "collect_expired_rules",
    "discover_config_file",
    "load_config",
    "load_preset",
    "merge_values",
]
