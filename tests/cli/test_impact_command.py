"""Tests for the ``coupling-insight impact`` command."""

import json

import pytest
from typer.testing import CliRunner

from coupling_insight.cli import app

runner = CliRunner()


@pytest.fixture
def crate(rust_crate):
    return rust_crate(
        {
            "src/lib.rs": "pub mod level;\npub mod game;\n",
            "src/level/mod.rs": "pub mod enemy;\n",
            "src/level/enemy.rs": "pub struct Enemy {\n    pub hp: u32,\n}\n",
            "src/game.rs": (
                "use crate::level::enemy::Enemy;\n"
                "pub fn hit(e: &mut Enemy) {\n"
                "    e.hp -= 1;\n"
                "}\n"
            ),
        }
    )


class TestImpactCommand:
    """Tests for 'coupling-insight impact'."""

    def test_rich_output(self, crate):
        result = runner.invoke(app, ["impact", "enemy", "--path", str(crate), "--no-history"])

        assert result.exit_code == 0
        assert "level::enemy" in result.stdout
        assert "Depended on by" in result.stdout
        assert "game" in result.stdout

    def test_json_output(self, crate):
        result = runner.invoke(
            app,
            ["impact", "level::enemy", "-p", str(crate), "--no-history", "--format", "json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["module"] == "level::enemy"
        assert [d["module"] for d in data["dependents"]] == ["game"]

    def test_unknown_module(self, crate):
        result = runner.invoke(app, ["impact", "nowhere", "-p", str(crate), "--no-history"])

        assert result.exit_code == 1
        assert "no module named" in result.stdout
