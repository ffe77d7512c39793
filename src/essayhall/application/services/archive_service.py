from __future__ import annotations

import json
import logging
import sqlite3
import threading
from dataclasses import asdict, dataclass, field
from typing import Callable

from essayhall.core.errors import ArchiveResetError
from essayhall.core.hashing import compute_text_digest
from essayhall.domain.models.video import Video
from essayhall.domain.normalize import normalize_record, raw_record_from_row
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo
from essayhall.infrastructure.db.sqlite import get_connection
from essayhall.infrastructure.importers.csv_archive_importer import RowIssue, parse_archive_csv
from essayhall.infrastructure.sources.archive_source import fetch_archive_text

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500
MAX_LOGGED_ISSUES = 5


@dataclass(slots=True)
class LoadResult:
    loaded: bool
    count: int
    issues: list[RowIssue] = field(default_factory=list)
    skipped_rows: int = 0

    @property
    def status_message(self) -> str:
        verb = "Imported" if self.loaded else "Loaded"
        return f"{verb} {self.count:,} videos"


class ArchiveService:
    """Fetch, parse, normalize and reconcile the archive table into the catalog store."""

    def __init__(
        self,
        video_repo: VideoRepo,
        flag_repo: FlagRepo,
        source: str,
        fetcher: Callable[[str], str] = fetch_archive_text,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.video_repo = video_repo
        self.flag_repo = flag_repo
        self.source = source
        self.fetcher = fetcher
        self.batch_size = batch_size
        self._load_lock = threading.Lock()

    def ensure_loaded(self) -> LoadResult:
        # At most one load per process; a concurrent caller waits and then reconciles
        # against what the first call wrote.
        with self._load_lock:
            return self._ensure_loaded_locked()

    def _ensure_loaded_locked(self) -> LoadResult:
        text = self.fetcher(self.source)
        parsed = parse_archive_csv(text)
        if parsed.issues:
            logger.warning(
                "Archive parse reported %d row issue(s); first: %s",
                len(parsed.issues),
                "; ".join(f"line {i.line}: {i.code}" for i in parsed.issues[:MAX_LOGGED_ISSUES]),
            )

        by_id: dict[str, Video] = {}
        skipped = 0
        for row in parsed.rows:
            raw = raw_record_from_row(row)
            if raw is None:
                skipped += 1
                continue
            video = normalize_record(raw)
            # Same id means same entity; the later row wins.
            by_id[video.id] = video
        videos = list(by_id.values())

        expected = len(videos)
        fingerprint = catalog_fingerprint(videos)
        current = self.video_repo.count()
        unchanged = self.video_repo.get_fingerprint() == fingerprint

        if current == expected and current > 0 and unchanged:
            logger.debug("Catalog already holds %d videos; skipping import.", current)
            return LoadResult(loaded=False, count=current, issues=parsed.issues, skipped_rows=skipped)

        if current > 0 and current != expected:
            logger.info("Catalog has %d videos but archive has %d; clearing and re-importing.", current, expected)
            self.video_repo.clear()
        elif current > 0:
            # Same size, different content: edited rows or swapped ids.
            logger.info("Archive content changed at %d videos; clearing and re-importing.", expected)
            self.video_repo.clear()

        for start in range(0, expected, self.batch_size):
            # Upsert by id: re-running never duplicates and overwrites changed rows.
            self.video_repo.bulk_upsert(videos[start : start + self.batch_size])
        self.video_repo.set_fingerprint(fingerprint)

        logger.info("Imported %d videos from %s", expected, self.source)
        return LoadResult(loaded=True, count=expected, issues=parsed.issues, skipped_rows=skipped)

    def reset(self) -> None:
        """Clear catalog and flags in one transaction. Callers re-run ensure_loaded() afterwards."""
        if self.video_repo.db_path != self.flag_repo.db_path:
            raise ArchiveResetError("Catalog and flag stores must share one database to reset atomically")

        conn = get_connection(self.video_repo.db_path)
        try:
            with conn:
                conn.execute("BEGIN IMMEDIATE")
                VideoRepo.delete_all(conn)
                FlagRepo.delete_all(conn)
        except sqlite3.Error as exc:
            raise ArchiveResetError(f"Failed to reset archive: {exc}") from exc
        finally:
            conn.close()
        logger.info("Cleared catalog and flags")


def catalog_fingerprint(videos: list[Video]) -> str:
    """Digest of the normalized catalog, in order. Equal tables give equal digests."""
    payload = json.dumps([asdict(video) for video in videos], ensure_ascii=False, sort_keys=True)
    return compute_text_digest(payload)
