"""
Tests for dataset loading and the terminal slideshow.
"""

import io
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from projectwall.display.slideshow import (
    EMPTY_MESSAGE,
    LOAD_ERROR_MESSAGE,
    DatasetLoadError,
    Slideshow,
    clean_title,
    format_card,
    load_projects,
)
from projectwall.display import slideshow as slideshow_module
from projectwall.main import main as cli_main


class NullTimer:
    def __init__(self, interval, function):
        self.daemon = False

    def start(self):
        pass

    def cancel(self):
        pass


def project(i, **overrides):
    data = {
        "id": f"p{i}",
        "url": f"https://sites.williams.edu/makerspace/projects/p{i}/",
        "title": f"Project {i} | Williams College Makerspace",
        "author": "Jane Doe",
        "tags": ["Robotics", "Laser", "Arduino", "Wood", "Paint"],
        "images": {"main": "", "thumbnail": "", "gallery": []},
        "qrCode": "data:image/png;base64,AAAA",
    }
    data.update(overrides)
    return data


def write_dataset(path, projects):
    path.write_text(json.dumps({
        "lastUpdated": "2024-01-01T00:00:00.000Z",
        "totalProjects": len(projects),
        "scrapingStats": {"startTime": 0, "projectsFound": 0, "projectsScraped": 0, "errors": 0},
        "projects": projects,
    }), encoding="utf-8")
    return path


def make_slideshow(path, **kwargs):
    output = io.StringIO()
    slideshow = Slideshow(
        data_path=path,
        window_size=kwargs.pop("window_size", 9),
        cycle_duration=15,
        animation_duration=0,
        output=output,
        timer_factory=NullTimer,
    )
    return slideshow, output


def test_load_projects_drops_incomplete_records(tmp_path):
    path = write_dataset(tmp_path / "projects.json", [
        project(1),
        project(2, qrCode=""),
        project(3, title=""),
    ])
    assert [p["id"] for p in load_projects(path)] == ["p1"]


def test_load_projects_raises_on_missing_file(tmp_path):
    with pytest.raises(DatasetLoadError):
        load_projects(tmp_path / "missing.json")


def test_clean_title_and_card():
    assert clean_title("Robot | Williams College: Makerspace & FabLab") == "Robot"
    card = format_card(project(1))
    assert card.splitlines()[0] == "Project 1"
    assert "By: Jane Doe" in card
    assert "[Paint]" not in card
    assert "No Image Available" in card


def test_once_renders_a_full_window(tmp_path):
    path = write_dataset(tmp_path / "projects.json", [project(i) for i in range(5)])
    slideshow, output = make_slideshow(path)

    assert slideshow.run(once=True) == 0
    text = output.getvalue()
    assert "1 / 1" in text
    assert text.count("Project 0") == 2
    assert text.count("Project 4") == 1


def test_empty_dataset_shows_error_panel(tmp_path):
    path = write_dataset(tmp_path / "projects.json", [])
    slideshow, output = make_slideshow(path)

    assert slideshow.run(once=True) == 1
    assert slideshow.cycler is None
    assert EMPTY_MESSAGE in output.getvalue()


def test_unreadable_dataset_shows_error_panel(tmp_path):
    path = tmp_path / "projects.json"
    path.write_text("not json", encoding="utf-8")
    slideshow, output = make_slideshow(path)

    assert slideshow.run(once=True) == 1
    assert LOAD_ERROR_MESSAGE in output.getvalue()


def test_keys_drive_the_cycler(tmp_path):
    path = write_dataset(tmp_path / "projects.json", [project(i) for i in range(20)])
    slideshow, _ = make_slideshow(path)

    code = slideshow.run(keys=io.StringIO("n\np\np\nh\nq\nn\n"))

    assert code == 0
    assert slideshow.cycler.cursor == 11
    assert slideshow.hidden
    assert not slideshow.cycler.running


def test_cli_display_once(tmp_path, capsys):
    path = write_dataset(tmp_path / "projects.json", [project(i) for i in range(3)])

    with pytest.raises(SystemExit) as exit_info:
        cli_main(["display", "--data", str(path), "--once", "--window-size", "4"])

    assert exit_info.value.code == 0
    assert "Project 2" in capsys.readouterr().out


def test_animation_pause_happens_before_navigation(tmp_path, monkeypatch):
    sleeps = []
    monkeypatch.setattr(slideshow_module.time, "sleep", sleeps.append)
    path = write_dataset(tmp_path / "projects.json", [project(i) for i in range(20)])
    output = io.StringIO()
    slideshow = Slideshow(
        data_path=path,
        window_size=9,
        cycle_duration=15,
        animation_duration=1.0,
        output=output,
        timer_factory=NullTimer,
    )

    assert slideshow.load()
    slideshow.cycler.render()
    assert sleeps == []

    slideshow.handle_key("n")
    assert sleeps == [0.5]
    assert slideshow.cycler.cursor == 9
