import pytest

from conftest import timetable_row
from reslot.core.exceptions import RescheduleError
from reslot.services.ingestion import (
    build_snapshot,
    extract_course_code,
    parse_meeting_cell,
    read_csv_rows,
)


def test_extract_course_code_variants():
    assert extract_course_code("CS101 Intro to Programming") == "CS101"
    assert extract_course_code("math2010 Linear Algebra") == "MATH2010"
    assert extract_course_code("Seminar Series") == "Seminar"
    assert extract_course_code("   ") == ""


def test_parse_meeting_cell():
    assert parse_meeting_cell("08:00-10:00 - R1\\Dr A") == (8, 10, "R1", "Dr A")
    assert parse_meeting_cell("13:00-15:00-LAB 2\\Dr Jane Roe") == (13, 15, "LAB 2", "Dr Jane Roe")
    assert parse_meeting_cell("TBA") is None
    assert parse_meeting_cell("08:00-10:00 - R1") is None


def test_build_snapshot_counts(snapshot):
    assert len(snapshot.catalog) == 4
    assert snapshot.total_classes == 7
    assert snapshot.skipped_cells == 1
    assert snapshot.occupancy.instructor_names() == ["Dr A", "Dr B", "Dr C"]
    assert snapshot.occupancy.classroom_names() == ["R1", "R2", "R3"]
    assert snapshot.occupancy.instructor_class_counts["Dr A"] == 4
    assert snapshot.occupancy.classroom_class_counts["R2"] == 3


def test_build_snapshot_sections_and_occupancy(snapshot):
    section = snapshot.catalog.get("CS101-1")
    assert section is not None
    assert section.code == "CS101"
    assert section.instructor == "Dr A"
    assert section.department == "Computer Science"
    assert [(m.day, m.start_hour, m.end_hour, m.room) for m in section.meetings] == [
        ("Sunday", 8, 10, "R1"),
        ("Tuesday", 8, 10, "R1"),
    ]
    assert section.hours_on("Sunday") == {8, 9}

    record = snapshot.occupancy.classroom_record("R1", "Sunday", 9)
    assert record.course_code == "CS101"
    assert record.section_id == "1"
    assert record.time_range == "08:00-10:00"
    assert snapshot.occupancy.is_classroom_occupied("R1", "Sunday", 10) is False
    assert snapshot.occupancy.is_instructor_busy("Dr A", "Thursday", 11) is True
    assert "ENG100-1" not in snapshot.catalog


def test_hours_outside_occupancy_window_are_not_recorded(settings):
    rows = [timetable_row("CS900 Evening Lab", "1", Sunday="19:00-22:00 - R7\\Dr Late")]
    snapshot = build_snapshot(rows, settings)

    section = snapshot.catalog.get("CS900-1")
    assert section.meetings[0].hours == range(19, 22)
    assert snapshot.occupancy.is_classroom_occupied("R7", "Sunday", 20) is True
    assert snapshot.occupancy.is_classroom_occupied("R7", "Sunday", 21) is False


def test_rows_without_course_or_section_are_skipped(settings):
    rows = [
        timetable_row("", "1", Sunday="08:00-10:00 - R1\\Dr A"),
        timetable_row("CS101 Intro", "", Sunday="08:00-10:00 - R1\\Dr A"),
    ]
    snapshot = build_snapshot(rows, settings)
    assert len(snapshot.catalog) == 0
    assert snapshot.total_classes == 0


def test_build_snapshot_rejects_non_mapping_rows(settings):
    with pytest.raises(RescheduleError) as exc_info:
        build_snapshot([["CS101", "1"]], settings)
    assert exc_info.value.details == {"row": 0}


def test_read_csv_rows_strips_bom_and_headers():
    text = (
        "\ufeffCourse Name , Section No,Sunday,Monday\n"
        "CS101 Intro,1,08:00-10:00 - R1\\Dr A,-\n"
    )
    rows = read_csv_rows(text)
    assert rows == [
        {
            "Course Name": "CS101 Intro",
            "Section No": "1",
            "Sunday": "08:00-10:00 - R1\\Dr A",
            "Monday": "-",
        }
    ]


def test_read_csv_rows_empty_text():
    assert read_csv_rows("") == []
