from jira_board.core.models import IssueRecord, StatusInfo
from jira_board.tree import build_issue_tree, flatten_forest, toggle_all
from jira_board.visual.render import format_duration, progress_bar, render_lines, type_icon
from jira_board.visual.tables import rows_to_dataframe


def rec(key, parent=None, points=None, spent=0, estimate=0, status=("To Do", "new")):
    return IssueRecord(
        key=key,
        issue_type="Sub-task" if parent else "Story",
        summary=f"Do {key}",
        status=StatusInfo(*status),
        assignee="Alice",
        parent_key=parent,
        story_points=points,
        time_spent_seconds=spent,
        time_estimate_seconds=estimate,
    )


def test_format_duration():
    assert format_duration(0) == "0m"
    assert format_duration(None) == "0m"
    assert format_duration(5400) == "1h 30m"
    assert format_duration(8 * 3600 + 3600) == "1d 1h"
    assert format_duration(59) == "0m"


def test_progress_bar():
    assert progress_bar(None) == "no estimate"
    assert progress_bar(0.5) == "[#####-----] 50%"
    assert progress_bar(1.5) == "[##########] 150%"


def test_type_icon_fallback():
    assert type_icon("Bug") == "🐞"
    assert type_icon("Something") == "•"


def test_render_lines_index_matches_rows():
    forest = build_issue_tree(
        [rec("A", points=5, spent=100, estimate=200), rec("B", parent="A", points=2, spent=50, estimate=100)]
    )
    toggle_all(forest)
    rows = flatten_forest(forest)
    lines = render_lines(rows)
    assert len(lines) == 2
    assert lines[0].startswith("▾ 📗 A  Do A")
    assert "[5 pts]" in lines[0]
    assert "[#####-----] 50%" in lines[0]
    assert lines[1].startswith("    ")
    assert "pts" not in lines[1]
    assert "0m/1m" in lines[1]


def test_rows_to_dataframe_marks_done_and_hides_child_points():
    forest = build_issue_tree([rec("A", points=3), rec("B", parent="A", points=1, status=("Done", "done"))])
    toggle_all(forest)
    df = rows_to_dataframe(flatten_forest(forest))
    assert df["key"].tolist() == ["A", "B"]
    assert df["Points"].tolist() == ["3", ""]
    assert df["done"].tolist() == [False, True]
    assert df["Progress"].tolist() == ["no estimate", ""]
