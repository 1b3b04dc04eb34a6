"""Tests for the explain trace."""

import json
from io import StringIO
from pathlib import Path

from rich.console import Console

from sloc_guard.config import build_config
from sloc_guard.explain import display_path, explain_path, render_explanation

RAW = {
    "content": {
        "max_lines": 500,
        "rules": [
            {"pattern": "**/*.rs", "max_lines": 300},
            {"pattern": "src/generated/**", "max_lines": 1000},
        ],
    },
    "structure": {
        "max_files": 20,
        "rules": [{"scope": "src/components/**", "max_files": 50}],
    },
}


def _render(explanation):
    buffer = StringIO()
    render_explanation(explanation, Console(file=buffer, width=120, no_color=True))
    return buffer.getvalue()


class TestExplainFile:
    def test_content_trace(self, tmp_path):
        explanation = explain_path(
            Path("src/generated/types.rs"), build_config(RAW), base_dir=tmp_path, as_directory=False
        )
        assert explanation.target == "file"
        assert explanation.path == "src/generated/types.rs"

        data = explanation.to_dict()
        assert data["target"] == "file"
        assert data["matched"]["kind"] == "rule"
        assert data["matched"]["index"] == 1
        assert data["effective"]["max_lines"] == 1000
        assert json.loads(explanation.to_json()) == data

    def test_render_sections(self, tmp_path):
        explanation = explain_path(
            Path("src/generated/types.rs"), build_config(RAW), base_dir=tmp_path, as_directory=False
        )
        text = _render(explanation)
        assert "Matched" in text
        assert "Superseded" in text
        assert "max_lines      1000" in text

    def test_excluded_file(self, tmp_path):
        config = build_config({"content": {"exclude": ["vendor/**"]}})
        explanation = explain_path(Path("vendor/x.rs"), config, base_dir=tmp_path, as_directory=False)
        assert explanation.to_dict()["matched"]["kind"] == "excluded"
        assert "not checked" in _render(explanation)


class TestExplainDirectory:
    def test_directory_on_disk_gets_structure_trace(self, tmp_path):
        (tmp_path / "src" / "components" / "button").mkdir(parents=True)
        explanation = explain_path(Path("src/components/button"), build_config(RAW), base_dir=tmp_path)
        assert explanation.target == "directory"

        data = explanation.to_dict()
        assert data["matched"]["kind"] == "rule"
        assert data["effective"]["max_files"] == 50

    def test_forced_directory(self, tmp_path):
        explanation = explain_path(Path("lib"), build_config(RAW), base_dir=tmp_path, as_directory=True)
        assert explanation.target == "directory"
        assert explanation.to_dict()["matched"]["kind"] == "default"
        assert "max_files" in _render(explanation)


class TestDisplayPath:
    def test_relative_to_base(self, tmp_path):
        assert display_path(tmp_path / "src" / "a.rs", tmp_path) == "src/a.rs"
        assert display_path(Path("./src/a.rs"), tmp_path) == "src/a.rs"

    def test_outside_base_stays_absolute(self, tmp_path):
        outside = tmp_path.parent / "elsewhere.rs"
        assert display_path(outside, tmp_path) == outside.as_posix()
