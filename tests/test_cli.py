"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from lessonscheduler import __version__
from lessonscheduler.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """A config with Monday-Friday working hours and a local data file."""
    data_file = tmp_path / "lessons.json"
    data_file.write_text(
        json.dumps(
            {
                "lessons": [
                    {
                        "coachId": "coach-1",
                        "clientId": "client-9",
                        "date": "2031-03-10T10:00:00",
                        "title": "Lesson",
                        "seriesId": None,
                    }
                ],
                "workouts": [
                    {"clientId": "client-1", "programId": "prog-1", "date": "2031-03-12", "title": "Leg day"}
                ],
            }
        ),
        encoding="utf-8",
    )
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "coach_id: coach-1\n"
        "timezone: America/New_York\n"
        "data_file: lessons.json\n"
        "working_hours:\n"
        "  start_time: '9:00 AM'\n"
        "  end_time: '1:00 PM'\n"
        "  working_days: [Monday, Tuesday, Wednesday, Thursday, Friday]\n",
        encoding="utf-8",
    )
    return config_path


def _lessons(config_file):
    return json.loads((config_file.parent / "lessons.json").read_text(encoding="utf-8"))["lessons"]


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["slots", "--date", "2031-03-10", "-c", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_slots_shows_booked_hours(config_file):
    result = runner.invoke(app, ["slots", "--date", "2031-03-10", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "9:00 AM" in result.output
    assert "12:00 PM" in result.output
    assert "1:00 PM" not in result.output
    assert result.output.count("booked") == 1
    assert result.output.count("free") == 3


def test_invalid_date(config_file):
    result = runner.invoke(app, ["slots", "--date", "next tuesday", "-c", str(config_file)])

    assert result.exit_code == 1


def test_book_saves_lesson(config_file):
    result = runner.invoke(
        app,
        ["book", "--client", "client-1", "--date", "2031-03-10", "--time", "2:30 PM", "--name", "Dana",
         "-c", str(config_file)],
    )

    assert result.exit_code == 0
    assert "1 lesson(s) scheduled" in result.output
    lessons = _lessons(config_file)
    assert {"date": "2031-03-10T14:30:00", "title": "Lesson with Dana"}.items() <= lessons[-1].items()


def test_book_taken_slot_fails(config_file):
    result = runner.invoke(
        app,
        ["book", "--client", "client-1", "--date", "2031-03-10", "--time", "10:00 AM", "-c", str(config_file)],
    )

    assert result.exit_code == 1
    assert "already booked" in result.output
    assert len(_lessons(config_file)) == 1


def test_book_non_working_day(config_file):
    args = ["book", "--client", "client-1", "--date", "2031-03-09", "--time", "10:00 AM", "-c", str(config_file)]

    rejected = runner.invoke(app, args)
    overridden = runner.invoke(app, args + ["--override-days"])

    assert rejected.exit_code == 1
    assert "not available on Sundays" in rejected.output
    assert overridden.exit_code == 0


def test_book_in_the_past(config_file):
    result = runner.invoke(
        app,
        ["book", "--client", "client-1", "--date", "2020-01-06", "--time", "10:00 AM", "-c", str(config_file)],
    )

    assert result.exit_code == 1
    assert "Cannot schedule lessons in the past" in result.output


def test_expand_previews_dates(config_file):
    result = runner.invoke(
        app,
        ["expand", "--date", "2031-03-10", "--time", "11:00 AM", "--end", "2031-03-31", "-c", str(config_file)],
    )

    assert result.exit_code == 0
    assert "4 lesson date(s)" in result.output
    assert len(_lessons(config_file)) == 1


def test_book_series(config_file):
    result = runner.invoke(
        app,
        ["book-series", "--client", "client-1", "--date", "2031-03-10", "--time", "11:00 AM",
         "--end", "2031-04-07", "--pattern", "biweekly", "-c", str(config_file)],
    )

    assert result.exit_code == 0
    assert "3 lesson(s) scheduled" in result.output
    series = [lesson for lesson in _lessons(config_file) if lesson["seriesId"]]
    assert [lesson["date"] for lesson in series] == [
        "2031-03-10T11:00:00",
        "2031-03-24T11:00:00",
        "2031-04-07T11:00:00",
    ]
    assert len({lesson["seriesId"] for lesson in series}) == 1


def test_book_series_bad_interval(config_file):
    result = runner.invoke(
        app,
        ["book-series", "--client", "client-1", "--date", "2031-03-10", "--time", "11:00 AM",
         "--end", "2031-04-07", "--interval", "0", "-c", str(config_file)],
    )

    assert result.exit_code == 1
    assert "positive" in result.output


def test_replace_workout(config_file):
    result = runner.invoke(
        app,
        ["replace", "--client", "client-1", "--program", "prog-1", "--date", "2031-03-12",
         "--time", "9:00 AM", "-c", str(config_file)],
    )

    assert result.exit_code == 0
    data = json.loads((config_file.parent / "lessons.json").read_text(encoding="utf-8"))
    assert data["workouts"] == []
    assert data["lessons"][-1]["date"] == "2031-03-12T09:00:00"
