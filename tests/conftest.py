"""Shared fixtures for Coupling Insight tests.

Most graph and balance tests run on synthetic facts (see ``factories``);
the extractor and pipeline tests parse real Rust snippets written into a
temporary crate.
"""

import textwrap

import pytest
from factories import couplings_to_facts, low_records, volatility_records

from coupling_insight.balance import BalanceEngine
from coupling_insight.config import AnalysisConfig
from coupling_insight.graph import GraphBuilder
from coupling_insight.modules import ModuleResolver
from coupling_insight.scanning import FileFacts, RustParser, SourceUnit, extract_facts


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def config():
    """Default configuration with history disabled."""
    return AnalysisConfig(history_enabled=False)


@pytest.fixture
def build_graph(config):
    """Build a graph from facts; records default to every file at Low."""

    def _build(facts, records=None, analysis_config=None, crate_aliases=()):
        if records is None:
            records = low_records(facts)
        builder = GraphBuilder(analysis_config or config, crate_aliases=crate_aliases)
        return builder.build(facts, records)

    return _build


@pytest.fixture
def scored_graph(build_graph, config):
    """Build and score a graph from ``{source: [(target, interaction)]}``.

    ``volatility`` pins modules to a level; every other module is Low.
    """

    def _scored(couplings, volatility=None, analysis_config=None):
        settings = analysis_config or config
        facts = couplings_to_facts(couplings)
        records = low_records(facts)
        records.update(volatility_records(volatility or {}))
        graph = build_graph(facts, records, analysis_config=settings)
        engine = BalanceEngine(settings)
        for edge in graph.edges:
            engine.score_edge(edge)
        return graph

    return _scored


@pytest.fixture(scope="session")
def rust_parser():
    return RustParser()


@pytest.fixture
def extract(rust_parser):
    """Parse a Rust snippet as if it lived at ``path`` and extract its facts."""
    resolver = ModuleResolver()

    def _extract(source: str, path: str = "src/lib.rs") -> FileFacts:
        code = textwrap.dedent(source)
        unit = SourceUnit(path=path, module_path=resolver.resolve(path), line_count=0)
        return extract_facts(unit, rust_parser.parse(code.encode(), path))

    return _extract


@pytest.fixture
def rust_crate(tmp_path):
    """Write a small crate (Cargo.toml plus sources) and return its root."""

    def _write(files: dict[str, str], name: str = "demo"):
        (tmp_path / "Cargo.toml").write_text(
            f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n'
        )
        for rel, source in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source))
        return tmp_path

    return _write
