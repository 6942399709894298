import logging
from concurrent.futures import Future

from jira_board.core.errors import FetchError, MutationError
from jira_board.core.models import CreatedIssue, IssueRecord, StatusInfo, Transition
from jira_board.views.cache import CacheKey, ViewKind
from jira_board.views.controller import ViewController
from jira_board.views.dispatch import run_immediately
from jira_board.views.notify import CollectingNotifier
from jira_board.views.prefs import Preferences, PreferenceStore
from jira_board.views.session import ViewSession, ViewState


def rec(key, parent=None, summary=None):
    return IssueRecord(
        key=key,
        issue_type="Sub-task" if parent else "Story",
        summary=summary or f"Summary {key}",
        status=StatusInfo("To Do", "new"),
        parent_key=parent,
        time_spent_seconds=100 if parent is None else 50,
        time_estimate_seconds=200 if parent is None else 100,
    )


class FakeFetcher:
    """Records every call and hands back futures the test resolves by hand."""

    def __init__(self):
        self.calls = []
        self.futures = []

    def _future(self, *call):
        self.calls.append(call)
        fut = Future()
        self.futures.append(fut)
        return fut

    def fetch_sprint_issues(self, project_key, filter_text):
        return self._future("sprint", project_key, filter_text)

    def fetch_backlog_issues(self, project_key, filter_text):
        return self._future("backlog", project_key, filter_text)

    def fetch_by_query(self, scope_hint, jql):
        return self._future("query", scope_hint, jql)

    def transition_issue(self, issue_key, transition_id):
        return self._future("transition", issue_key, transition_id)

    def close_issue(self, issue_key):
        return self._future("close", issue_key)

    def update_issue(self, issue_key, fields):
        return self._future("update", issue_key, fields)

    def append_description(self, issue_key, text):
        return self._future("append", issue_key, text)

    def add_worklog(self, issue_key, time_spent):
        return self._future("worklog", issue_key, time_spent)

    def create_issue(self, project_key, summary, issue_type, description):
        return self._future("create", project_key, summary, issue_type, description)

    def fetch_calls(self):
        return [c for c in self.calls if c[0] in ("sprint", "backlog", "query")]


def make_controller(prefs=None, store=None):
    fetcher = FakeFetcher()
    notifier = CollectingNotifier()
    session = ViewSession(preferences=prefs or Preferences()) if store is None else None
    controller = ViewController(fetcher, session, notifier=notifier, scheduler=run_immediately, store=store)
    return controller, fetcher, notifier


def messages(notifier, level=None):
    return [n.message for n in notifier.items if level is None or n.level == level]


def test_sprint_end_to_end_with_expand_and_refresh():
    controller, fetcher, notifier = make_controller()
    assert controller.activate(ViewKind.SPRINT, "proj") is ViewState.LOADING
    assert controller.session.loading_message == "Loading Active Sprint for PROJ..."
    assert fetcher.fetch_calls() == [("sprint", "PROJ", None)]

    fetcher.futures[-1].set_result([rec("A"), rec("B", parent="A")])
    assert controller.state is ViewState.RENDERED
    assert [r.node.key for r in controller.rows] == ["A"]
    assert controller.forest[0].aggregate.total_time_spent == 150
    assert "Loaded Active Sprint for PROJ" in messages(notifier)

    assert controller.toggle_node_at(0) is True
    assert [(r.node.key, r.depth) for r in controller.rows] == [("A", 0), ("B", 1)]

    controller.refresh()
    assert controller.state is ViewState.LOADING
    assert len(fetcher.fetch_calls()) == 2
    fetcher.futures[-1].set_result([rec("A"), rec("B", parent="A")])
    assert [r.node.key for r in controller.rows] == ["A", "B"]


def test_cache_hit_renders_without_fetch():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    controller.activate(ViewKind.BACKLOG, "PROJ")
    fetcher.futures[-1].set_result([rec("X")])

    controller.activate(ViewKind.SPRINT, "PROJ")
    assert controller.state is ViewState.RENDERED
    assert [r.node.key for r in controller.rows] == ["A"]
    assert len(fetcher.fetch_calls()) == 2


def test_late_result_is_cached_but_not_rendered():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    sprint_future = fetcher.futures[-1]
    controller.activate(ViewKind.BACKLOG, "PROJ")
    backlog_future = fetcher.futures[-1]

    sprint_future.set_result([rec("S-1")])
    assert controller.state is ViewState.LOADING
    assert controller.forest == []
    assert CacheKey.for_view(ViewKind.SPRINT, project_key="PROJ") in controller.session.cache

    backlog_future.set_result([rec("B-1")])
    assert [r.node.key for r in controller.rows] == ["B-1"]
    assert controller.session.rendered_key.kind is ViewKind.BACKLOG


def test_fetch_failure_notifies_once_and_keeps_previous_tree():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    notifier.pop_all()

    controller.activate(ViewKind.BACKLOG, "PROJ")
    fetcher.futures[-1].set_exception(FetchError("Search failed 500: boom"))

    assert controller.state is ViewState.IDLE
    assert controller.session.loading_message is None
    assert controller.session.last_error == "Search failed 500: boom"
    assert messages(notifier, logging.ERROR) == ["Error: Search failed 500: boom"]
    assert CacheKey.for_view(ViewKind.BACKLOG, project_key="PROJ") not in controller.session.cache
    assert [r.node.key for r in controller.rows] == ["A"]


def test_refresh_after_failed_fetch_fetches_again():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_exception(FetchError("Search failed 503: unavailable"))
    assert controller.state is ViewState.IDLE

    assert controller.refresh() is ViewState.LOADING
    assert fetcher.fetch_calls() == [("sprint", "PROJ", None), ("sprint", "PROJ", None)]
    fetcher.futures[-1].set_result([rec("A")])
    assert controller.state is ViewState.RENDERED
    assert [r.node.key for r in controller.rows] == ["A"]
    assert controller.session.last_error is None


def test_unexpected_exception_is_reported_as_fetch_error():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_exception(ConnectionError("reset"))
    assert controller.state is ViewState.IDLE
    assert messages(notifier, logging.ERROR) == ["Error: reset"]


def test_empty_result_is_cached_and_warns():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.BACKLOG, "PROJ")
    fetcher.futures[-1].set_result([])
    assert controller.state is ViewState.RENDERED
    assert controller.rows == []
    assert messages(notifier, logging.WARNING) == ["No issues found in Backlog."]

    controller.activate(ViewKind.BACKLOG, "PROJ")
    assert len(fetcher.fetch_calls()) == 1


def test_activate_without_context_warns():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT)
    controller.activate(ViewKind.MY_ISSUES)
    controller.activate(ViewKind.JQL)
    assert fetcher.calls == []
    assert controller.state is ViewState.IDLE
    assert messages(notifier, logging.WARNING) == [
        "No project context for Active Sprint.",
        "No projects configured for My Issues.",
        "No JQL query set.",
    ]


def test_my_issues_builds_query_from_saved_projects():
    controller, fetcher, _ = make_controller(Preferences(my_issues_projects=["SEC", "PROJ"]))
    controller.open()
    kind, scope_hint, jql = fetcher.calls[-1]
    assert kind == "query"
    assert scope_hint == "PROJ"
    assert 'project IN ("PROJ", "SEC")' in jql
    assert "statusCategory != Done" in jql


def test_filter_changes_key_and_reuses_expand_state():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A"), rec("B", parent="A")])
    controller.toggle_node("A")

    controller.set_filter("login")
    assert fetcher.fetch_calls()[-1] == ("sprint", "PROJ", "login")
    fetcher.futures[-1].set_result([rec("A"), rec("B", parent="A")])
    assert [r.node.key for r in controller.rows] == ["A", "B"]

    controller.clear_filter()
    assert controller.session.filter_text == ""
    # Unfiltered result is still cached
    assert len(fetcher.fetch_calls()) == 2


def test_clear_filter_without_filter_only_notifies():
    controller, fetcher, notifier = make_controller()
    controller.clear_filter()
    assert messages(notifier) == ["No filter active"]
    assert fetcher.calls == []


def test_mutation_success_invalidates_and_refetches():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A"), rec("B", parent="A")])

    future = controller.transition_issue("B", "31", "In Progress")
    assert controller.session.is_busy
    future.set_result(None)

    assert controller.session.pending_mutations == 0
    assert "B -> In Progress" in messages(notifier)
    assert controller.state is ViewState.LOADING
    assert len(fetcher.fetch_calls()) == 2


def test_mutation_invalidates_other_views_containing_issue():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.BACKLOG, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("C")])

    controller.update_issue("A", {"priority": {"name": "High"}}).set_result(None)
    assert CacheKey.for_view(ViewKind.BACKLOG, project_key="PROJ") not in controller.session.cache


def test_failed_mutation_leaves_cache_and_tree_alone():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    forest = controller.forest

    controller.close_issue("A").set_exception(MutationError("No 'Done' transition found for A"))

    assert controller.forest is forest
    assert controller.state is ViewState.RENDERED
    assert CacheKey.for_view(ViewKind.SPRINT, project_key="PROJ") in controller.session.cache
    assert messages(notifier, logging.ERROR) == ["Failed to close: No 'Done' transition found for A"]
    assert len(fetcher.fetch_calls()) == 1


def test_close_issue_reports_transition_used():
    controller, fetcher, notifier = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    controller.close_issue("A").set_result(Transition("41", "Done"))
    assert "A -> Done" in messages(notifier)


def test_edit_summary_skips_unchanged_or_empty():
    controller, fetcher, _ = make_controller()
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A", summary="Old")])
    assert controller.edit_summary("A", "Old") is None
    assert controller.edit_summary("A", "   ") is None
    controller.edit_summary("A", "New")
    assert fetcher.calls[-1] == ("update", "A", {"summary": "New"})


def test_log_work_and_append_ignore_blank_input():
    controller, fetcher, _ = make_controller()
    assert controller.log_work("A", " ") is None
    assert controller.append_description("A", "") is None
    controller.log_work("A", " 2h ")
    assert fetcher.calls[-1] == ("worklog", "A", "2h")


def test_create_assigned_to_me_invalidates_my_issues():
    controller, fetcher, notifier = make_controller(Preferences(my_issues_projects=["PROJ"]))
    controller.activate(ViewKind.MY_ISSUES)
    fetcher.futures[-1].set_result([rec("PROJ-1")])
    controller.activate(ViewKind.SPRINT, "OTHER")
    fetcher.futures[-1].set_result([rec("OTHER-1")])
    my_key = CacheKey.for_view(ViewKind.MY_ISSUES, projects=["PROJ"])
    assert my_key in controller.session.cache

    future = controller.create_issue("Write docs", project_key="PROJ")
    assert fetcher.calls[-1] == ("create", "PROJ", "Write docs", "Story", None)
    future.set_result(CreatedIssue("PROJ-2", assignee_account_id="abc"))

    assert my_key not in controller.session.cache
    assert "Created PROJ-2: Write docs" in messages(notifier)


def test_create_without_project_context_warns():
    controller, fetcher, notifier = make_controller()
    assert controller.create_issue("Something") is None
    assert messages(notifier, logging.WARNING) == ["No project context"]
    assert fetcher.calls == []


def test_create_uses_single_my_issues_project():
    controller, fetcher, _ = make_controller(Preferences(my_issues_projects=["SEC"]))
    controller.activate(ViewKind.MY_ISSUES)
    controller.create_issue("Task", issue_type="Task")
    assert fetcher.calls[-1] == ("create", "SEC", "Task", "Task", None)


def test_preferences_persist_through_store(tmp_path):
    store = PreferenceStore(tmp_path / "state.json")
    controller, fetcher, notifier = make_controller(store=store)

    controller.set_my_issues_projects(["sec", "PROJ", "sec", " "])
    assert store.load().my_issues_projects == ["SEC", "PROJ"]
    assert controller.state is ViewState.LOADING

    assert controller.toggle_resolved() is False
    assert store.load().hide_resolved is False
    assert "Resolved issues: shown" in messages(notifier)
    assert "statusCategory != Done" not in fetcher.calls[-1][2]

    controller.set_query("project = PROJ ORDER BY created DESC")
    assert store.load().last_jql == "project = PROJ ORDER BY created DESC"
    assert controller.session.current_kind is ViewKind.JQL
    assert fetcher.calls[-1][2] == "(project = PROJ) ORDER BY created DESC"

    restored, _, _ = make_controller(store=store)
    assert restored.session.my_issues_projects == ["SEC", "PROJ"]
    assert restored.session.hide_resolved is False


def test_clearing_my_issues_projects_notifies():
    controller, fetcher, notifier = make_controller(Preferences(my_issues_projects=["A"]))
    controller.set_my_issues_projects([])
    assert messages(notifier) == ["My Issues projects cleared"]
    assert fetcher.calls == []


def test_default_scheduler_defers_until_pump():
    fetcher = FakeFetcher()
    controller = ViewController(fetcher, notifier=CollectingNotifier())
    controller.activate(ViewKind.SPRINT, "PROJ")
    fetcher.futures[-1].set_result([rec("A")])
    assert controller.state is ViewState.LOADING
    assert controller.pump() == 1
    assert controller.state is ViewState.RENDERED
    assert controller.pump() == 0


def test_blank_saved_project_does_not_enable_my_issues(tmp_path):
    path = tmp_path / "state.json"
    path.write_text('{"my_issues_projects": ["  "]}')
    controller, fetcher, notifier = make_controller(store=PreferenceStore(path))
    controller.activate(ViewKind.MY_ISSUES)
    assert fetcher.calls == []
    assert messages(notifier, logging.WARNING) == ["No projects configured for My Issues."]
