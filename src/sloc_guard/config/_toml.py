"""TOML parsing: stdlib tomllib on 3.11+, the tomli backport before that."""

import sys
from pathlib import Path
from typing import Any, Dict

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

TOMLDecodeError = tomllib.TOMLDecodeError


def loads_toml(text: str) -> Dict[str, Any]:
    return tomllib.loads(text)


def load_toml_file(path: Path) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)
