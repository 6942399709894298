import json

from jira_board.views.prefs import Preferences, PreferenceStore


def test_missing_file_gives_defaults(tmp_path):
    prefs = PreferenceStore(tmp_path / "nope.json").load()
    assert prefs == Preferences()
    assert prefs.hide_resolved is True


def test_save_and_load(tmp_path):
    store = PreferenceStore(tmp_path / "sub" / "state.json")
    store.save(Preferences(my_issues_projects=["PROJ", "SEC"], hide_resolved=False, last_jql="project = X"))
    data = json.loads((tmp_path / "sub" / "state.json").read_text())
    assert data["my_issues_projects"] == ["PROJ", "SEC"]
    loaded = store.load()
    assert loaded.my_issues_projects == ["PROJ", "SEC"]
    assert loaded.hide_resolved is False
    assert loaded.last_jql == "project = X"


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    assert PreferenceStore(path).load() == Preferences()


def test_wrong_types_fall_back_per_field(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"my_issues_projects": "PROJ", "hide_resolved": "yes", "last_jql": "  "}))
    assert PreferenceStore(path).load() == Preferences()


def test_saved_projects_are_normalized_on_load(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"my_issues_projects": ["  ", "proj ", "PROJ", "", None, "sec"]}))
    assert PreferenceStore(path).load().my_issues_projects == ["PROJ", "SEC"]
