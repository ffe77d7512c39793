from __future__ import annotations

from pathlib import Path

import pytest

from essayhall.cli.main import main
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo

ARCHIVE = (
    "url,title,owner,duration,published_date,view_count,Topic\n"
    "https://www.youtube.com/watch?v=AAA111,Alpha Essay,Chan A,12:34,2021-01-01,\"1,000\",\"Film, Music\"\n"
    "https://youtu.be/BBB222,Bravo Essay,Chan B,1:02:03,2022-02-02,500,Games\n"
)


@pytest.fixture()
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("ESSAYHALL_HOME", raising=False)
    monkeypatch.delenv("ESSAYHALL_ARCHIVE_SOURCE", raising=False)
    (tmp_path / "archive.csv").write_text(ARCHIVE, encoding="utf-8")
    return tmp_path


def _run(project: Path, *args: str) -> int:
    return main(["--project-root", str(project), *args])


def test_commands_require_init(project: Path) -> None:
    assert _run(project, "load") == 1


def test_home_pointing_at_a_file_is_a_configuration_error(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    not_a_dir = project / "home.txt"
    not_a_dir.write_text("x", encoding="utf-8")
    monkeypatch.setenv("ESSAYHALL_HOME", str(not_a_dir))

    assert _run(project, "init") == 1
    assert not (project / ".essayhall").exists()


def test_load_search_flag_reset_flow(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = project / ".essayhall" / "essayhall.db"

    assert _run(project, "init") == 0
    assert _run(project, "load") == 0
    assert VideoRepo(db_path).count() == 2
    assert "Imported 2 videos" in capsys.readouterr().out

    assert _run(project, "load") == 0
    assert "Loaded 2 videos" in capsys.readouterr().out

    assert _run(project, "search", "bravo", "--sort", "relevance") == 0
    out = capsys.readouterr().out
    assert "BBB222" in out
    assert "AAA111" not in out

    assert _run(project, "topics") == 0
    assert "Film" in capsys.readouterr().out

    assert _run(project, "flag", "AAA111", "--set", "watch-later") == 0
    stored = FlagRepo(db_path).get("AAA111")
    assert stored is not None and stored.watch_later is True

    assert _run(project, "flag", "nope", "--toggle", "favorite") == 1

    assert _run(project, "search", "--mode", "watch_later") == 0
    assert "AAA111" in capsys.readouterr().out

    assert _run(project, "reset") == 2
    assert _run(project, "reset", "--yes") == 0
    assert FlagRepo(db_path).count() == 0
    assert VideoRepo(db_path).count() == 2


def test_missing_archive_source_fails_cleanly(project: Path) -> None:
    assert _run(project, "init") == 0
    assert _run(project, "--source", str(project / "missing.csv"), "load") == 1
