"""Tests for hotspot ranking."""

from coupling_insight.balance import Issue, IssueKind, Severity
from coupling_insight.report import find_hotspots
from coupling_insight.report.hotspots import CYCLE_SUGGESTION, cycle_members
from coupling_insight.scanning import InteractionKind

CALL = InteractionKind.CALL


def _issue(subject, severity=Severity.MEDIUM, kind=IssueKind.INAPPROPRIATE_INTIMACY):
    return Issue(
        kind=kind,
        severity=severity,
        subject=tuple(subject),
        description="d",
        suggestion=f"fix {subject[0]}",
        balance_score=0.5,
    )


def _names(graph, ids):
    return sorted(graph.node(i).name for i in ids)


class TestCycleMembers:
    def test_only_modules_on_a_cycle(self, scored_graph):
        graph = scored_graph({"a": [("b", CALL)], "b": [("a", CALL)], "c": [("a", CALL)]})
        assert _names(graph, cycle_members(graph)) == ["a", "b"]

    def test_self_edge_is_not_a_cycle(self, scored_graph):
        graph = scored_graph({"a": [("a", CALL), ("b", CALL)]})
        assert cycle_members(graph) == set()


class TestFindHotspots:
    def test_scores_issues_edges_and_cycle(self, scored_graph):
        graph = scored_graph({"a": [("b", CALL)], "b": [("a", CALL)], "c": [("a", CALL)]})
        cycle = _issue(("a", "b"), Severity.CRITICAL, IssueKind.CIRCULAR_DEPENDENCY)

        hotspots = find_hotspots(graph, [cycle])

        assert [(h.module, h.score) for h in hotspots] == [("a", 96), ("b", 40)]
        top = hotspots[0]
        assert top.in_cycle
        assert top.issues == (cycle,)
        assert top.suggestion == CYCLE_SUGGESTION
        assert top.files == ("src/a.rs",)

    def test_cycle_only_member_keeps_the_cycle_issue(self, scored_graph):
        graph = scored_graph({"a": [("b", CALL)], "b": [("a", CALL)]})
        cycle = _issue(("a", "b"), Severity.CRITICAL, IssueKind.CIRCULAR_DEPENDENCY)

        (_, member) = find_hotspots(graph, [cycle])

        assert member.module == "b"
        assert member.issues == (cycle,)

    def test_modules_without_issues_are_skipped(self, scored_graph):
        graph = scored_graph({"a": [("b", CALL)], "c": [("b", CALL)]})
        hotspots = find_hotspots(graph, [_issue(("c", "b"))])

        assert [h.module for h in hotspots] == ["c"]
        # 15 for the medium issue, 2 for its one edge
        assert hotspots[0].score == 17
        assert hotspots[0].suggestion == "fix c"
        assert not hotspots[0].in_cycle

    def test_ties_break_by_name_and_limit_applies(self, scored_graph):
        graph = scored_graph({"x": [("z", CALL)], "y": [("z", CALL)], "w": [("z", CALL)]})
        issues = [_issue((name, "z"), Severity.LOW) for name in ("y", "x", "w")]

        hotspots = find_hotspots(graph, issues, limit=2)

        assert [h.module for h in hotspots] == ["w", "x"]

    def test_empty_graph(self, scored_graph):
        assert find_hotspots(scored_graph({}), []) == []
