from __future__ import annotations

import threading
from dataclasses import replace
from pathlib import Path

import pytest

from essayhall.application.services.archive_service import ArchiveService, catalog_fingerprint
from essayhall.core.errors import ArchiveFetchError
from essayhall.domain.models.flags import VideoFlags
from essayhall.domain.models.video import Video
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo
from essayhall.infrastructure.db.sqlite import initialize_schema

HEADER = "url,title,owner,duration,published_date,view_count,Topic\n"
ROWS = [
    "https://www.youtube.com/watch?v=AAA111,Alpha,Chan A,12:34,2021-01-01,\"1,000\",\"Film, Music\"\n",
    "https://youtu.be/BBB222,Bravo,Chan B,1:02:03,2022-02-02,500,Games\n",
    "https://example.test/essay,Charlie,Chan C,bad,2020-03-03,n/a,\n",
]


class _Source:
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls = 0

    def __call__(self, source: str) -> str:
        self.calls += 1
        return self.text


def _service(tmp_path: Path, source: _Source, batch_size: int = 500) -> ArchiveService:
    db_path = tmp_path / "essayhall.db"
    initialize_schema(db_path)
    return ArchiveService(
        video_repo=VideoRepo(db_path),
        flag_repo=FlagRepo(db_path),
        source="archive.csv",
        fetcher=source,
        batch_size=batch_size,
    )


def test_first_load_populates_catalog(tmp_path: Path) -> None:
    service = _service(tmp_path, _Source(HEADER + "".join(ROWS)))

    result = service.ensure_loaded()

    assert result.loaded is True
    assert result.count == 3
    assert result.status_message == "Imported 3 videos"
    ids = [v.id for v in service.video_repo.get_all()]
    assert ids == ["AAA111", "BBB222", "https://example.test/essay"]


def test_second_load_is_a_no_op(tmp_path: Path) -> None:
    service = _service(tmp_path, _Source(HEADER + "".join(ROWS)))
    service.ensure_loaded()

    again = service.ensure_loaded()

    assert again.loaded is False
    assert again.count == 3
    assert again.status_message == "Loaded 3 videos"
    assert service.video_repo.count() == 3


def test_rows_without_url_or_title_are_skipped(tmp_path: Path) -> None:
    text = HEADER + ROWS[0] + ",No url,Chan,1:00,2020-01-01,1,\n" + "https://youtu.be/x,,Chan,1:00,2020-01-01,1,\n"
    service = _service(tmp_path, _Source(text))

    result = service.ensure_loaded()

    assert result.count == 1
    assert result.skipped_rows == 2


def test_malformed_rows_do_not_block_import(tmp_path: Path) -> None:
    text = HEADER + ROWS[0] + "https://youtu.be/broken,Too,few\n" + ROWS[1]
    service = _service(tmp_path, _Source(text))

    result = service.ensure_loaded()

    assert result.loaded is True
    assert result.count == 2
    assert [issue.code for issue in result.issues] == ["too_few_fields"]


def test_count_mismatch_clears_and_reimports(tmp_path: Path) -> None:
    source = _Source(HEADER + ROWS[0] + ROWS[1])
    service = _service(tmp_path, source)
    service.ensure_loaded()

    source.text = HEADER + ROWS[1]
    result = service.ensure_loaded()

    assert result.loaded is True
    assert result.count == 1
    assert [v.id for v in service.video_repo.get_all()] == ["BBB222"]
    assert service.video_repo.get("AAA111") is None


def test_changed_row_with_same_identity_and_count_replaces_entity(tmp_path: Path) -> None:
    source = _Source(HEADER + ROWS[0])
    service = _service(tmp_path, source)
    service.ensure_loaded()

    source.text = HEADER + ROWS[0].replace("Alpha", "Alpha Remastered")
    result = service.ensure_loaded()

    assert result.loaded is True
    assert result.count == 1
    stored = service.video_repo.get("AAA111")
    assert stored is not None
    assert stored.title == "Alpha Remastered"
    assert [v.title for v in service.video_repo.get_all()] == ["Alpha Remastered"]
    assert service.ensure_loaded().loaded is False


def test_same_count_with_swapped_identity_drops_stale_entity(tmp_path: Path) -> None:
    source = _Source(HEADER + ROWS[0] + ROWS[1])
    service = _service(tmp_path, source)
    service.ensure_loaded()

    source.text = HEADER + ROWS[1] + ROWS[2]
    result = service.ensure_loaded()

    assert result.loaded is True
    assert result.count == 2
    assert [v.id for v in service.video_repo.get_all()] == ["BBB222", "https://example.test/essay"]
    assert service.video_repo.get("AAA111") is None


def test_partial_import_without_fingerprint_is_redone(tmp_path: Path) -> None:
    source = _Source(HEADER + "".join(ROWS))
    service = _service(tmp_path, source)
    service.ensure_loaded()
    stored = service.video_repo.get_all()
    # Rows written but the final fingerprint write never happened.
    service.video_repo.clear()
    service.video_repo.bulk_upsert(stored)

    assert service.video_repo.get_fingerprint() is None
    assert service.ensure_loaded().loaded is True
    assert service.ensure_loaded().loaded is False


def test_duplicate_identity_later_row_wins(tmp_path: Path) -> None:
    dup = "https://youtu.be/AAA111,Alpha Again,Chan A,1:00,2021-01-01,1,Film\n"
    service = _service(tmp_path, _Source(HEADER + ROWS[0] + dup))

    service.ensure_loaded()

    stored = service.video_repo.get("AAA111")
    assert stored is not None
    assert stored.title == "Alpha Again"
    assert service.video_repo.count() == 1
    assert service.ensure_loaded().loaded is False


def test_batches_cover_every_row(tmp_path: Path) -> None:
    rows = [f"https://youtu.be/id{i:04d},Title {i},Chan,1:00,2020-01-01,{i},Film\n" for i in range(7)]
    service = _service(tmp_path, _Source(HEADER + "".join(rows)), batch_size=3)

    result = service.ensure_loaded()

    assert result.count == 7
    assert service.video_repo.count() == 7


def test_fetch_failure_is_fatal_and_leaves_catalog_untouched(tmp_path: Path) -> None:
    source = _Source(HEADER + "".join(ROWS))
    service = _service(tmp_path, source)
    service.ensure_loaded()

    def failing(_: str) -> str:
        raise ArchiveFetchError("Failed to load archive.csv")

    service.fetcher = failing
    with pytest.raises(ArchiveFetchError):
        service.ensure_loaded()

    assert service.video_repo.count() == 3


def test_reset_clears_both_stores_and_reload_repopulates(tmp_path: Path) -> None:
    service = _service(tmp_path, _Source(HEADER + "".join(ROWS)))
    service.ensure_loaded()
    service.flag_repo.put(VideoFlags(id="AAA111", updated_at="2026-01-01T00:00:00.000+00:00", favorite=True))

    service.reset()

    assert service.video_repo.count() == 0
    assert service.flag_repo.count() == 0

    result = service.ensure_loaded()
    assert result.loaded is True
    assert service.video_repo.count() == 3


def test_concurrent_loads_write_once(tmp_path: Path) -> None:
    source = _Source(HEADER + "".join(ROWS))
    service = _service(tmp_path, source)
    results = []

    def worker() -> None:
        results.append(service.ensure_loaded())

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(r.loaded for r in results) == [False, True]
    assert service.video_repo.count() == 3


def test_local_file_source(tmp_path: Path) -> None:
    archive = tmp_path / "archive.csv"
    archive.write_text(HEADER + "".join(ROWS), encoding="utf-8")
    db_path = tmp_path / "essayhall.db"
    initialize_schema(db_path)
    service = ArchiveService(VideoRepo(db_path), FlagRepo(db_path), source=str(archive))

    assert service.ensure_loaded().count == 3

    missing = ArchiveService(VideoRepo(db_path), FlagRepo(db_path), source=str(tmp_path / "nope.csv"))
    with pytest.raises(ArchiveFetchError):
        missing.ensure_loaded()


def test_catalog_fingerprint_tracks_content_and_order() -> None:
    a = Video(id="a", url="https://youtu.be/a", title="A", video_id="a", duration_seconds=60)
    b = Video(id="b", url="https://youtu.be/b", title="B", video_id="b", duration_seconds=None)

    assert catalog_fingerprint([a, b]) == catalog_fingerprint([a, b])
    assert catalog_fingerprint([a, b]) != catalog_fingerprint([b, a])
    assert catalog_fingerprint([a]) != catalog_fingerprint([replace(a, title="A2")])
