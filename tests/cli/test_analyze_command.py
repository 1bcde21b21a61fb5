"""Tests for the ``coupling-insight analyze`` command."""

import json

import pytest
from typer.testing import CliRunner

from coupling_insight import __version__
from coupling_insight.cli import app

runner = CliRunner()


@pytest.fixture
def crate(rust_crate):
    return rust_crate(
        {
            "src/lib.rs": "pub mod model;\npub mod view;\n",
            "src/model.rs": "pub struct Board {\n    pub cells: Vec<u8>,\n}\n",
            "src/view.rs": (
                "use crate::model::Board;\n"
                "pub fn draw(b: &Board) -> usize {\n"
                "    b.cells.len()\n"
                "}\n"
            ),
        }
    )


class TestAnalyzeCommand:
    """Tests for 'coupling-insight analyze'."""

    def test_json_report_to_file(self, crate, tmp_path):
        out = tmp_path / "report.json"
        result = runner.invoke(
            app, ["analyze", str(crate), "--no-history", "--format", "json", "-o", str(out)]
        )

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["summary"]["module_count"] == 3
        assert data["summary"]["history"]["status"] == "degraded"
        assert any(
            (e["source"], e["target"]) == ("view", "model") for e in data["edges"]
        )

    def test_rich_output(self, crate):
        result = runner.invoke(app, ["analyze", str(crate), "--no-history"])

        assert result.exit_code == 0
        assert "Health grade" in result.stdout

    def test_rich_output_to_file(self, crate, tmp_path):
        out = tmp_path / "report.txt"
        result = runner.invoke(app, ["analyze", str(crate), "--no-history", "-o", str(out)])

        assert result.exit_code == 0
        assert "Health grade" in out.read_text()
        assert "Report written" in result.stdout

    def test_invalid_config_exits_with_error(self, crate, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[analysis]\nhistory_months = 0\n")
        result = runner.invoke(app, ["analyze", str(crate), "-c", str(bad)])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_unknown_section_exits_with_error(self, crate, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[colors]\nenabled = true\n")
        result = runner.invoke(app, ["analyze", str(crate), "-c", str(bad)])

        assert result.exit_code == 1

    def test_nonexistent_path(self):
        result = runner.invoke(app, ["analyze", "/nonexistent/crate"])

        assert result.exit_code != 0

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout
