"""Tests for cadence/modifier.py: toggle, metadata updates, add."""

from datetime import date

import pytest

from cadence.errors import LineOutOfRangeError, NotATaskError
from cadence.models import KEEP, REMOVE, MetadataUpdates, NewTask, Set, TaskMetadata
from cadence.modifier import add_task, apply_updates, insert_under_section, toggle_task, update_metadata

TODAY = date(2026, 2, 2)


@pytest.fixture
def note(tmp_path):
    path = tmp_path / "note.md"
    path.write_text(
        "# 2026-02-02\n"
        "\n"
        "## Tasks\n"
        "- [ ] Ship the report #project due:2026-02-10 !!\n"
        "- [x] Done thing\n"
        "Plain line\n",
        encoding="utf-8",
    )
    return path


# ── toggle ────────────────────────────────────────────────────


def test_toggle_open_to_done(note):
    task = toggle_task(note, 4)
    assert task.completed is True
    assert task.raw == "- [x] Ship the report #project due:2026-02-10 !!"
    assert task.metadata.due == date(2026, 2, 10)
    assert note.read_text(encoding="utf-8").splitlines()[3] == task.raw


def test_toggle_done_to_open(note):
    task = toggle_task(note, 5)
    assert task.completed is False
    assert task.raw == "- [ ] Done thing"


def test_toggle_twice_restores_line(note):
    original = note.read_bytes()
    toggle_task(note, 4)
    task = toggle_task(note, 4)
    assert task.completed is False
    assert note.read_bytes() == original


def test_toggle_preserves_crlf(tmp_path):
    path = tmp_path / "crlf.md"
    path.write_bytes(b"## Tasks\r\n- [ ] One\r\n- [ ] Two\r\n")
    toggle_task(path, 3)
    assert path.read_bytes() == b"## Tasks\r\n- [ ] One\r\n- [x] Two\r\n"


def test_toggle_not_a_task(note):
    with pytest.raises(NotATaskError):
        toggle_task(note, 6)


@pytest.mark.parametrize("line", [0, 8, -1])
def test_toggle_out_of_range(note, line):
    with pytest.raises(LineOutOfRangeError):
        toggle_task(note, line)


def test_toggle_missing_file_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        toggle_task(tmp_path / "missing.md", 1)


# ── update_metadata ───────────────────────────────────────────


def test_remove_due_only(note):
    task = update_metadata(note, 4, MetadataUpdates(due=REMOVE))
    assert task.raw == "- [ ] Ship the report #project !!"
    assert task.metadata.due is None
    assert task.metadata.priority == "medium"
    assert task.metadata.tags == ("project",)


def test_replace_due_in_place(note):
    task = update_metadata(note, 4, MetadataUpdates(due=Set(date(2026, 3, 1))))
    assert task.raw == "- [ ] Ship the report #project due:2026-03-01 !!"


def test_append_missing_fields_in_fixed_order():
    line = "- [ ] Task"
    updates = MetadataUpdates(
        tags=Set(["a", "b"]),
        age=Set(2),
        priority=Set("low"),
        scheduled=Set(date(2026, 2, 4)),
        due=Set(date(2026, 2, 5)),
        created=Set(date(2026, 2, 1)),
    )
    assert apply_updates(line, updates) == (
        "- [ ] Task created:2026-02-01 due:2026-02-05 scheduled:2026-02-04 "
        "priority:low age:2 #a #b"
    )


def test_set_priority_replaces_shorthand():
    assert apply_updates("- [ ] Fix !!! now", MetadataUpdates(priority=Set("low"))) == (
        "- [ ] Fix now priority:low"
    )
    assert apply_updates("- [ ] Fix priority:high", MetadataUpdates(priority=Set("medium"))) == (
        "- [ ] Fix priority:medium"
    )


def test_remove_priority_strips_both_forms():
    line = "- [ ] !! Fix priority:high bug"
    assert apply_updates(line, MetadataUpdates(priority=REMOVE)) == "- [ ] Fix bug"


def test_tags_replace_whole_set():
    line = "- [ ] Plan #old #stale week"
    assert apply_updates(line, MetadataUpdates(tags=Set(["new"]))) == "- [ ] Plan week #new"
    assert apply_updates(line, MetadataUpdates(tags=Set([]))) == "- [ ] Plan week"
    assert apply_updates(line, MetadataUpdates(tags=REMOVE)) == "- [ ] Plan week"


def test_keep_leaves_line_alone():
    line = "- [ ]  spaced   text due:2026-02-10"
    assert apply_updates(line, MetadataUpdates(due=KEEP)) == line


def test_removing_only_token_keeps_task_shape():
    line = apply_updates("- [ ] due:2026-02-10", MetadataUpdates(due=REMOVE))
    assert line == "- [ ] "


def test_update_invalid_value_raises():
    with pytest.raises(ValueError):
        apply_updates("- [ ] Task", MetadataUpdates(priority=Set("urgent")))
    with pytest.raises(ValueError):
        apply_updates("- [ ] Task", MetadataUpdates(age=Set(-1)))


def test_update_from_mapping(note):
    updates = MetadataUpdates.from_mapping({"due": None, "age": 3})
    task = update_metadata(note, 4, updates)
    assert task.metadata.due is None
    assert task.metadata.age == 3


def test_from_mapping_rejects_unknown_field():
    with pytest.raises(ValueError):
        MetadataUpdates.from_mapping({"colour": "red"})


def test_update_not_a_task(note):
    with pytest.raises(NotATaskError):
        update_metadata(note, 1, MetadataUpdates(due=REMOVE))


def test_update_leaves_other_lines(note):
    before = note.read_text(encoding="utf-8").splitlines()
    update_metadata(note, 4, MetadataUpdates(age=Set(1)))
    after = note.read_text(encoding="utf-8").splitlines()
    assert after[:3] == before[:3]
    assert after[4:] == before[4:]


# ── add_task ──────────────────────────────────────────────────


def test_add_task_to_new_note(tmp_path):
    path = tmp_path / "Journal" / "2026-02-02.md"
    task = add_task(path, "## Tasks", NewTask(text="Buy milk"), today=TODAY)
    assert path.read_text(encoding="utf-8") == "## Tasks\n- [ ] Buy milk created:2026-02-02\n"
    assert task.line == 2
    assert task.metadata.created == TODAY


def test_add_task_under_existing_section(note):
    task = add_task(note, "  ## TASKS ", NewTask(text="New one"), today=TODAY)
    lines = note.read_text(encoding="utf-8").splitlines()
    assert task.line == 4
    assert lines[2] == "## Tasks"
    assert lines[3] == "- [ ] New one created:2026-02-02"
    assert lines[4].startswith("- [ ] Ship the report")


def test_add_task_appends_missing_section(tmp_path):
    path = tmp_path / "note.md"
    path.write_text("# Title\nSome notes\n", encoding="utf-8")
    task = add_task(path, "## Tasks", NewTask(text="Later"), today=TODAY)
    assert path.read_text(encoding="utf-8") == (
        "# Title\nSome notes\n\n## Tasks\n- [ ] Later created:2026-02-02\n"
    )
    assert task.line == 5


def test_add_task_with_metadata(tmp_path):
    path = tmp_path / "note.md"
    new = NewTask(
        text="Report",
        metadata=TaskMetadata(
            created=date(2026, 1, 1),
            due=date(2026, 2, 10),
            priority="high",
            tags=("work",),
        ),
    )
    task = add_task(path, "## Tasks", new, today=TODAY)
    assert task.raw == "- [ ] Report created:2026-01-01 due:2026-02-10 priority:high #work"


def test_insert_under_section_preserves_crlf():
    content, first = insert_under_section("## Tasks\r\n- [ ] Old\r\n", "## Tasks", ["- [ ] New"])
    assert content == "## Tasks\r\n- [ ] New\r\n- [ ] Old\r\n"
    assert first == 2
