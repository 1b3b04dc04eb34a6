"""Built-in presets, loaded with ``extends = "preset:<name>"``."""

from typing import Any, Dict, List

from ..exceptions import ConfigFileError, UnknownPresetError
from ._toml import loads_toml

PRESET_PREFIX = "preset:"

_RUST_STRICT = """
version = "2"

[scanner]
exclude = [".git/**", "target/**", "vendor/**", "*.generated.rs"]

[content]
extensions = ["rs"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/*_test{,s}.rs"
max_lines = 1000
reason = "Test files carry fixtures and assertions"

[[content.rules]]
pattern = "**/tests/**/*.rs"
max_lines = 1000
reason = "Integration tests carry fixtures and assertions"

[[content.rules]]
pattern = "**/benches/**/*.rs"
max_lines = 1500
reason = "Benchmarks may embed datasets"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
deny_files = ["*.bak", "*.tmp", ".DS_Store", "Thumbs.db"]
deny_extensions = [".exe", ".dll", ".so", ".dylib"]

[[structure.rules]]
scope = "tests/**"
max_files = 50
max_dirs = 15
reason = "Test directories hold many fixtures"
"""

_NODE_STRICT = """
version = "2"

[scanner]
exclude = [".git/**", "node_modules/**", "dist/**", "build/**", ".next/**", "coverage/**"]

[content]
extensions = ["js", "jsx", "ts", "tsx", "mjs", "cjs"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/*.{test,spec}.{js,jsx,ts,tsx}"
max_lines = 1000
reason = "Test files carry fixtures and mocks"

[[content.rules]]
pattern = "**/__tests__/**"
max_lines = 1000
reason = "Test files carry fixtures and mocks"

[[content.rules]]
pattern = "**/*.stories.{js,jsx,ts,tsx}"
max_lines = 800
reason = "Stories enumerate component variants"

[structure]
max_files = 25
max_dirs = 15
warn_threshold = 0.9
deny_files = ["*.bak", "*.tmp", ".DS_Store", "npm-debug.log*", "yarn-error.log"]
deny_dirs = ["node_modules"]

[[structure.rules]]
scope = "{__tests__,test,tests}/**"
max_files = 50
max_dirs = 20
reason = "Test directories hold many fixtures"

[[structure.rules]]
scope = "src/components/**"
max_files = 40
reason = "Component directories group related files"
"""

_PYTHON_STRICT = """
version = "2"

[scanner]
exclude = [
    ".git/**", "__pycache__/**", ".venv/**", "venv/**", ".tox/**", "*.egg-info/**",
    ".pytest_cache/**", ".mypy_cache/**", ".ruff_cache/**", "build/**", "dist/**",
]

[content]
extensions = ["py", "pyi"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/{test_*,*_test}.py"
max_lines = 1000
reason = "Test files carry fixtures and assertions"

[[content.rules]]
pattern = "**/conftest.py"
max_lines = 800
reason = "Shared fixtures accumulate in conftest"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
deny_files = ["*.pyc", "*.pyo", "*.bak", ".DS_Store"]
deny_dirs = ["__pycache__"]

[[structure.rules]]
scope = "tests/**"
max_files = 50
max_dirs = 15
reason = "Test directories hold many modules"
"""

_GO_STRICT = """
version = "2"

[scanner]
exclude = [".git/**", "vendor/**", "bin/**"]

[content]
extensions = ["go"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/*_test.go"
max_lines = 1000
reason = "Table-driven tests grow long"

[[content.rules]]
pattern = "**/*.pb.go"
max_lines = 5000
reason = "Generated protobuf code"

[structure]
max_files = 25
max_dirs = 10
warn_threshold = 0.9
deny_files = ["*.bak", "*.tmp", ".DS_Store"]
deny_extensions = [".exe"]
"""

_MONOREPO_BASE = """
version = "2"

[scanner]
exclude = [
    ".git/**", "node_modules/**", "target/**", "vendor/**", "dist/**", "build/**",
    "__pycache__/**", ".venv/**",
]

[content]
max_lines = 800
warn_threshold = 0.9

[structure]
max_files = 30
max_dirs = 20
max_depth = 8
deny_files = [".DS_Store", "Thumbs.db", "*.bak"]

[[structure.rules]]
scope = "{packages,apps,services}/*"
max_dirs = 15
relative_depth = true
max_depth = 6
reason = "Each workspace member gets its own depth budget"
"""

PRESETS: Dict[str, str] = {
    "rust-strict": _RUST_STRICT,
    "node-strict": _NODE_STRICT,
    "python-strict": _PYTHON_STRICT,
    "go-strict": _GO_STRICT,
    "monorepo-base": _MONOREPO_BASE,
}


def available_presets() -> List[str]:
    return sorted(PRESETS)


def load_preset(name: str) -> Dict[str, Any]:
    """Parse a built-in preset into a raw config table."""
    source = PRESETS.get(name)
    if source is None:
        raise UnknownPresetError(name, available_presets())
    try:
        return loads_toml(source)
    except ValueError as e:
        raise ConfigFileError(f"{PRESET_PREFIX}{name}", str(e)) from e
