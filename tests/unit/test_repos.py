from __future__ import annotations

from pathlib import Path

import pytest

from essayhall.core.errors import CatalogStoreError
from essayhall.domain.models.flags import VideoFlags
from essayhall.domain.models.video import Video
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo
from essayhall.infrastructure.db.sqlite import SCHEMA_VERSION, get_connection, initialize_schema, schema_version


def _db(tmp_path: Path) -> Path:
    db_path = tmp_path / "essayhall.db"
    initialize_schema(db_path)
    return db_path


def _video(video_id: str, title: str = "Title", **kwargs) -> Video:
    return Video(
        id=video_id,
        url=f"https://youtu.be/{video_id}",
        title=title,
        video_id=video_id,
        duration_seconds=kwargs.pop("duration_seconds", 600),
        topics=kwargs.pop("topics", ("Film",)),
        **kwargs,
    )


def test_schema_is_versioned(tmp_path: Path) -> None:
    db_path = _db(tmp_path)
    assert schema_version(db_path) == SCHEMA_VERSION


def test_foreign_schema_generation_is_wiped(tmp_path: Path) -> None:
    db_path = _db(tmp_path)
    VideoRepo(db_path).bulk_upsert([_video("a1")])
    with get_connection(db_path) as conn:
        conn.execute("PRAGMA user_version = 99;")
        conn.commit()

    initialize_schema(db_path)

    assert schema_version(db_path) == SCHEMA_VERSION
    assert VideoRepo(db_path).count() == 0


def test_video_repo_round_trip_preserves_absent_fields(tmp_path: Path) -> None:
    repo = VideoRepo(_db(tmp_path))
    repo.bulk_upsert([_video("a1", duration_seconds=None, topics=("Film", "Film", "Music"), view_count="1,234")])

    stored = repo.get("a1")
    assert stored is not None
    assert stored.duration_seconds is None
    assert stored.topics == ("Film", "Film", "Music")
    assert stored.view_count == "1,234"
    assert stored.owner is None


def test_video_repo_upsert_replaces_by_id_in_place(tmp_path: Path) -> None:
    repo = VideoRepo(_db(tmp_path))
    repo.bulk_upsert([_video("a1", "First"), _video("b2", "Second")])
    repo.bulk_upsert([_video("a1", "First (edited)")])

    assert repo.count() == 2
    assert [v.title for v in repo.get_all()] == ["First (edited)", "Second"]


def test_video_repo_failed_batch_applies_nothing(tmp_path: Path) -> None:
    repo = VideoRepo(_db(tmp_path))
    broken = Video(id="b2", url="https://youtu.be/b2", title=None, video_id="b2", duration_seconds=1)  # type: ignore[arg-type]

    with pytest.raises(CatalogStoreError):
        repo.bulk_upsert([_video("a1"), broken])

    assert repo.count() == 0


def test_video_repo_clear(tmp_path: Path) -> None:
    repo = VideoRepo(_db(tmp_path))
    repo.bulk_upsert([_video("a1"), _video("b2")])
    repo.clear()
    assert repo.count() == 0
    assert repo.get_all() == []


def test_flag_repo_put_is_whole_row_replace(tmp_path: Path) -> None:
    repo = FlagRepo(_db(tmp_path))
    repo.put(VideoFlags(id="a1", updated_at="2026-01-01T00:00:00.000+00:00", favorite=True, watched=True))
    repo.put(VideoFlags(id="a1", updated_at="2026-01-02T00:00:00.000+00:00", watch_later=True))

    stored = repo.get("a1")
    assert stored == VideoFlags(id="a1", updated_at="2026-01-02T00:00:00.000+00:00", watch_later=True)
    assert repo.count() == 1


def test_flag_repo_bulk_upsert_and_clear(tmp_path: Path) -> None:
    repo = FlagRepo(_db(tmp_path))
    repo.bulk_upsert(
        [
            VideoFlags(id="a1", updated_at="2026-01-01T00:00:00.000+00:00", favorite=True),
            VideoFlags(id="b2", updated_at="2026-01-02T00:00:00.000+00:00", watched=True),
        ]
    )
    assert [f.id for f in repo.get_all()] == ["b2", "a1"]

    repo.clear()
    assert repo.count() == 0


def test_video_repo_fingerprint_is_cleared_with_rows(tmp_path: Path) -> None:
    repo = VideoRepo(_db(tmp_path))
    assert repo.get_fingerprint() is None

    repo.bulk_upsert([_video("a1")])
    repo.set_fingerprint("abc")
    repo.set_fingerprint("def")
    assert repo.get_fingerprint() == "def"

    repo.clear()
    assert repo.get_fingerprint() is None
