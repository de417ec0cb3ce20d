from reslot.services.comparison import (
    Cell,
    current_classroom_grid,
    current_instructor_grid,
    proposed_classroom_grid,
    proposed_instructor_grid,
    reschedule_summary,
)


def prepare(session):
    session.groups.add_section("CS101-1")
    session.moves.toggle("CS101-1", "Tuesday", 8)
    session.assign("Monday", 14, 16, "CS101-1", "R1")


def test_current_instructor_grid_marks_vacated_hours(session):
    prepare(session)
    grid = current_instructor_grid(session, "Dr A")

    assert grid["Sunday"] == {
        8: Cell(status="removing", course="CS101", section="1"),
        9: Cell(status="removing", course="CS101", section="1"),
        12: Cell(status="busy", course="PHYS110", section="1"),
        13: Cell(status="busy", course="PHYS110", section="1"),
    }
    assert [cell.status for cell in grid["Tuesday"].values()] == ["busy", "busy"]
    assert grid["Monday"] == {}


def test_proposed_instructor_grid_overlays_assignments(session):
    prepare(session)
    grid = proposed_instructor_grid(session, "Dr A")

    assert list(grid["Sunday"]) == [12, 13]
    assert grid["Monday"] == {
        14: Cell(status="new", course="CS101", section="1"),
        15: Cell(status="new", course="CS101", section="1"),
    }
    assert list(grid["Tuesday"]) == [8, 9]


def test_classroom_grids(session):
    prepare(session)
    current = current_classroom_grid(session, "R1")
    proposed = proposed_classroom_grid(session, "R1")

    assert [cell.status for cell in current["Sunday"].values()] == ["removing", "removing"]
    assert [cell.status for cell in current["Tuesday"].values()] == ["busy", "busy"]
    assert proposed["Sunday"] == {}
    assert [cell.status for cell in proposed["Monday"].values()] == ["new", "new"]


def test_reschedule_summary(session):
    prepare(session)
    summary = reschedule_summary(session)

    assert summary["total_assignments"] == 1
    assert summary["affected_classrooms"] == ["R1"]
    assert summary["affected_instructors"] == ["Dr A"]
    (section,) = summary["sections"]
    assert section["section_key"] == "CS101-1"
    assert section["group_name"] == "Year 1"
    assert [(entry.day, entry.start_hour) for entry in section["vacated"]] == [("Sunday", 8)]
    assert [(entry.day, entry.start_hour) for entry in section["kept"]] == [("Tuesday", 8)]
    assert [(item.day, item.classroom) for item in section["assignments"]] == [("Monday", "R1")]
