"""End-to-end tests: real Rust sources on disk through the whole pipeline."""

import textwrap

import pytest

from coupling_insight import analyze
from coupling_insight.config import AnalysisConfig
from coupling_insight.dimensions import Distance, Strength, Volatility
from coupling_insight.exceptions import ConfigurationError, InvalidPathError
from coupling_insight.pipeline import CouplingPipeline

CRATE = {
    "src/lib.rs": """
        pub mod model;
        pub mod service;
        pub mod util;
    """,
    "src/model.rs": """
        pub struct User {
            pub name: String,
            pub age: u32,
        }
    """,
    "src/service.rs": """
        use crate::model::User;
        use crate::util::shout;

        pub fn register(name: String) -> User {
            let user = User { name, age: 0 };
            shout(&user.name);
            user
        }
    """,
    "src/util.rs": """
        use serde::Serialize;

        pub fn shout(text: &str) -> String {
            text.to_uppercase()
        }
    """,
}


def _edges(report):
    return {report.graph.edge_key(e): e for e in report.edges}


@pytest.fixture
def crate(rust_crate):
    return rust_crate(CRATE)


class TestPipeline:
    def test_builds_module_graph(self, crate, config):
        report = CouplingPipeline(crate, config).run()

        names = [m.name for m in report.modules]
        assert names[:4] == ["crate", "model", "service", "util"]
        assert "::serde" in names

        edges = _edges(report)
        assert edges[("service", "model")].strength is Strength.INTRUSIVE
        assert edges[("service", "util")].strength is Strength.FUNCTIONAL
        assert edges[("util", "::serde")].external
        assert report.summary.files_analyzed == 4
        assert report.skipped == []

    def test_degraded_history_makes_internal_edges_medium(self, crate, config):
        report = CouplingPipeline(crate, config).run()
        assert report.summary.history_status == "degraded"
        assert report.summary.history_reason == "history mining disabled"
        for edge in report.edges:
            expected = Volatility.LOW if edge.external else Volatility.MEDIUM
            assert edge.volatility is expected

    def test_syntax_error_is_skipped_not_fatal(self, rust_crate, config):
        files = dict(CRATE)
        files["src/broken.rs"] = """
            pub fn ok() {}

            pub fn broken( {
        """
        report = CouplingPipeline(rust_crate(files), config).run()

        (skipped,) = report.skipped
        assert skipped.path == "src/broken.rs"
        assert skipped.reason == "syntax error"
        assert skipped.line is not None
        assert report.summary.files_skipped == 1
        assert report.graph.by_name("broken") is None

    def test_invalid_utf8_is_skipped(self, rust_crate, config):
        root = rust_crate(CRATE)
        (root / "src" / "latin1.rs").write_bytes(b"// caf\xe9\n")
        report = CouplingPipeline(root, config).run()
        assert [s.path for s in report.skipped] == ["src/latin1.rs"]
        assert "UTF-8" in report.skipped[0].reason

    def test_output_is_deterministic(self, crate, config):
        first = CouplingPipeline(crate, config).run().to_json()
        second = CouplingPipeline(crate, config).run().to_json()
        assert first == second

    def test_parallel_matches_sequential(self, rust_crate):
        files = dict(CRATE)
        for i in range(10):
            files["src/lib.rs"] += f"pub mod extra{i};\n"
            files[f"src/extra{i}.rs"] = f"use crate::model::User;\npub fn f{i}(u: User) {{}}\n"
        root = rust_crate(files)

        sequential = CouplingPipeline(root, AnalysisConfig(history_enabled=False, workers=1))
        parallel = CouplingPipeline(root, AnalysisConfig(history_enabled=False, workers=4))
        assert sequential.run().to_json() == parallel.run().to_json()

    def test_not_a_directory(self, tmp_path, config):
        target = tmp_path / "file.rs"
        target.write_text("fn main() {}\n")
        with pytest.raises(InvalidPathError):
            CouplingPipeline(target, config).run()

    def test_empty_tree(self, tmp_path, config):
        report = CouplingPipeline(tmp_path, config).run()
        assert report.modules == []
        assert report.health_grade == "B"


class TestCrateAliases:
    def test_package_name_with_dashes(self, rust_crate, config):
        root = rust_crate({"src/lib.rs": "pub mod a;\n"}, name="my-game")
        assert CouplingPipeline(root, config).crate_aliases == frozenset({"my_game"})

    def test_lib_name_is_added(self, tmp_path, config):
        (tmp_path / "Cargo.toml").write_text(
            '[package]\nname = "engine-bin"\n\n[lib]\nname = "engine"\n'
        )
        assert CouplingPipeline(tmp_path, config).crate_aliases == frozenset(
            {"engine_bin", "engine"}
        )

    def test_no_manifest(self, tmp_path, config):
        assert CouplingPipeline(tmp_path, config).crate_aliases == frozenset()

    def test_unreadable_manifest(self, tmp_path, config):
        (tmp_path / "Cargo.toml").write_text("[package\n")
        assert CouplingPipeline(tmp_path, config).crate_aliases == frozenset()

    def test_alias_paths_resolve_internally(self, rust_crate, config):
        root = rust_crate(
            {
                "src/lib.rs": "pub mod model;\npub mod app;\n",
                "src/model.rs": "pub struct Level;\n",
                "src/app.rs": "use my_game::model::Level;\npub fn load(l: Level) {}\n",
            },
            name="my-game",
        )
        report = CouplingPipeline(root, config).run()
        assert ("app", "model") in _edges(report)
        assert report.graph.by_name("::my_game") is None


WORKSPACE = {
    "Cargo.toml": """
        [workspace]
        members = ["crates/*"]
    """,
    "crates/a/Cargo.toml": """
        [package]
        name = "a"
    """,
    "crates/a/src/lib.rs": """
        pub mod api;
        pub mod util;
    """,
    "crates/a/src/util.rs": """
        pub struct Conf {
            pub x: u32,
        }
    """,
    "crates/a/src/api.rs": """
        use crate::util::Conf;

        pub fn read(c: &Conf) -> u32 {
            c.x
        }
    """,
    "crates/b/Cargo.toml": """
        [package]
        name = "b-app"
    """,
    "crates/b/src/main.rs": """
        use a::util::Conf;

        pub fn make() -> Conf {
            Conf { x: 1 }
        }
    """,
}


def _write_tree(root, files):
    for rel, source in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(source))
    return root


class TestWorkspace:
    def test_members_are_separate_crates(self, tmp_path, config):
        report = CouplingPipeline(_write_tree(tmp_path, WORKSPACE), config).run()

        assert [m.name for m in report.modules] == ["a", "a::api", "a::util", "b_app"]
        edges = _edges(report)
        inner = edges[("a::api", "a::util")]
        assert inner.strength is Strength.INTRUSIVE
        assert inner.distance is Distance.DIFFERENT_MODULE
        across = edges[("b_app", "a::util")]
        assert not across.external
        assert across.distance is Distance.DIFFERENT_CONTAINER
        assert report.summary.external_crate_count == 0

    def test_members_found_without_manifests(self, tmp_path, config):
        files = {k: v for k, v in WORKSPACE.items() if k.startswith("crates/a/src/")}
        report = CouplingPipeline(_write_tree(tmp_path, files), config).run()

        assert report.summary.module_count == 3
        assert report.summary.internal_edge_count == 1
        assert ("a::api", "a::util") in _edges(report)

    def test_module_dict_names_the_crate(self, tmp_path, config):
        report = CouplingPipeline(_write_tree(tmp_path, WORKSPACE), config).run()
        modules = {m["name"]: m for m in report.to_dict()["modules"]}
        assert modules["a::util"]["crate"] == "a"
        assert modules["a::util"]["files"] == ["crates/a/src/util.rs"]


class TestEffectiveWorkers:
    def test_explicit(self, tmp_path):
        pipeline = CouplingPipeline(tmp_path, AnalysisConfig(workers=3))
        assert pipeline.effective_workers(1) == 3

    def test_small_trees_run_sequentially(self, tmp_path):
        assert CouplingPipeline(tmp_path).effective_workers(7) == 1

    def test_auto_is_capped(self, tmp_path):
        workers = CouplingPipeline(tmp_path).effective_workers(500)
        assert 1 <= workers <= 8


class TestAnalyzeApi:
    def test_returns_report(self, crate):
        report = analyze(crate, history_enabled=False)
        assert report.summary.module_count == 4

    def test_project_config_is_discovered(self, crate):
        (crate / ".coupling.toml").write_text('[analysis]\nexclude = ["src/util.rs"]\n')
        report = analyze(crate, history_enabled=False)
        assert report.graph.by_name("util") is None

    def test_missing_config_file(self, crate):
        with pytest.raises(ConfigurationError):
            analyze(crate, config_file=crate / "nope.toml")
