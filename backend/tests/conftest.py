import pytest
from fastapi.testclient import TestClient

from reslot.api.deps import clear_session_store
from reslot.core.config import Settings
from reslot.main import app
from reslot.services.ingestion import build_snapshot
from reslot.services.session import RescheduleSession


def timetable_row(course_name, section_no, department="Computer Science", **days):
    row = {"Course Name": course_name, "Section No": section_no, "Department Name": department}
    for day in ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"):
        row[day] = days.get(day, "-")
    return row


SAMPLE_ROWS = [
    timetable_row(
        "CS101 Intro to Programming",
        "1",
        Sunday="08:00-10:00 - R1\\Dr A",
        Tuesday="08:00-10:00 - R1\\Dr A",
    ),
    timetable_row("CS101 Intro to Programming", "2", Monday="10:00-12:00 - R2\\Dr B"),
    timetable_row(
        "MATH201 Calculus",
        "1",
        department="Mathematics",
        Monday="08:00-10:00 - R2\\Dr C",
        Wednesday="08:00-10:00 - R2\\Dr C",
    ),
    timetable_row(
        "PHYS110 Physics",
        "1",
        department="Physics",
        Sunday="12:00-14:00 - R3\\Dr A",
        Thursday="10:00-12:00 - R3\\Dr A",
    ),
    timetable_row("ENG100 English", "1", department="Languages", Thursday="TBA"),
]


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def sample_rows():
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture()
def snapshot(sample_rows, settings):
    return build_snapshot(sample_rows, settings)


@pytest.fixture()
def session(snapshot, settings):
    return RescheduleSession(snapshot, settings)


@pytest.fixture()
def make_session(settings):
    def factory(rows):
        return RescheduleSession(build_snapshot(rows, settings), settings)

    return factory


@pytest.fixture()
def client():
    clear_session_store()
    with TestClient(app) as test_client:
        yield test_client
    clear_session_store()
