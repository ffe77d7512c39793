from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from typing import Any, Callable

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from essayhall.application.services.archive_service import ArchiveService, LoadResult
from essayhall.application.services.flag_service import FlagService
from essayhall.application.services.project_service import ProjectService
from essayhall.application.services.query_service import QueryService
from essayhall.core.config import AppPaths
from essayhall.core.errors import EssayHallError, FlagError, QueryError
from essayhall.core.thumbnails import thumbnail_urls
from essayhall.core.video_fields import duration_bucket, format_duration, parse_number_loose
from essayhall.domain.models.flags import VideoFlags
from essayhall.domain.models.query import DEFAULT_PAGE_SIZE, QuerySpec
from essayhall.domain.models.video import Video
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo
from essayhall.infrastructure.sources.archive_source import fetch_archive_text

logger = logging.getLogger(__name__)


class FlagUpdateRequest(BaseModel):
    key: str
    value: bool | None = None


def create_app(paths: AppPaths, fetcher: Callable[[str], str] = fetch_archive_text) -> FastAPI:
    app = FastAPI(title="Video Essay Hall of Fame", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    ProjectService(paths).init_project()

    video_repo = VideoRepo(paths.db_path)
    flag_repo = FlagRepo(paths.db_path)
    archive_service = ArchiveService(video_repo, flag_repo, source=paths.archive_source, fetcher=fetcher)
    flag_service = FlagService(flag_repo)

    state_lock = threading.Lock()
    state: dict[str, Any] = {
        "query_service": QueryService([]),
        "status": "Waking up the archive…",
        "load_error": None,
    }

    def load_catalog(reimport: bool = False) -> LoadResult | None:
        try:
            result = archive_service.ensure_loaded()
        except EssayHallError as exc:
            logger.error("Archive load failed: %s", exc)
            with state_lock:
                state["status"] = str(exc)
                state["load_error"] = str(exc)
            return None
        videos = video_repo.get_all()
        with state_lock:
            state["query_service"] = QueryService(videos)
            state["status"] = f"Re-imported {result.count:,} videos" if reimport else result.status_message
            state["load_error"] = None
        return result

    def current_query_service() -> QueryService:
        with state_lock:
            return state["query_service"]

    def current_load_error() -> str | None:
        with state_lock:
            return state["load_error"]

    load_catalog()

    @app.get("/api/status")
    def api_status() -> dict[str, Any]:
        counts = flag_service.counts()
        with state_lock:
            return {
                "status": state["status"],
                "load_error": state["load_error"],
                "video_count": len(state["query_service"].videos),
                "flag_counts": asdict(counts),
            }

    @app.post("/api/archive/load")
    def api_archive_load() -> dict[str, Any]:
        result = load_catalog()
        if result is None:
            raise HTTPException(status_code=502, detail=current_load_error())
        return {"ok": True, "loaded": result.loaded, "count": result.count, "issues": len(result.issues)}

    @app.post("/api/archive/reset")
    def api_archive_reset() -> dict[str, Any]:
        try:
            archive_service.reset()
        except EssayHallError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        flag_service.reload()
        with state_lock:
            state["query_service"] = QueryService([])
        result = load_catalog(reimport=True)
        if result is None:
            raise HTTPException(status_code=502, detail=current_load_error())
        with state_lock:
            status = state["status"]
        return {"ok": True, "count": result.count, "status": status}

    @app.get("/api/videos")
    def api_videos(
        q: str = "",
        topic: list[str] = Query(default=[]),
        duration: list[str] = Query(default=[]),
        owner: str | None = None,
        mode: str = "discover",
        sort: str = "newest",
        seed: int | None = None,
        limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=5000),
    ) -> dict[str, Any]:
        try:
            spec = QuerySpec(
                text=q,
                topics=frozenset(topic),
                durations=frozenset(duration),
                owner=owner,
                mode=mode,
                sort=None if sort == "relevance" else sort,
                shuffle_seed=seed,
                page_size=limit,
            )
        except QueryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        flags = flag_service.snapshot()
        result = current_query_service().run(flags, spec)
        return {
            "total": result.total,
            "list_total": result.list_total,
            "count": len(result.items),
            "videos": [_video_payload(v, flags.get(v.id)) for v in result.items],
        }

    @app.get("/api/videos/{video_id}")
    def api_video(video_id: str) -> dict[str, Any]:
        video = current_query_service().get(video_id)
        if video is None:
            raise HTTPException(status_code=404, detail=f"Video not found: {video_id}")
        return _video_payload(video, flag_service.get(video_id))

    @app.get("/api/topics")
    def api_topics() -> dict[str, Any]:
        counts = current_query_service().topic_counts()
        return {"count": len(counts), "topics": [{"topic": c.topic, "count": c.count} for c in counts]}

    @app.get("/api/owners")
    def api_owners() -> dict[str, Any]:
        owners = current_query_service().owners()
        return {"count": len(owners), "owners": owners}

    @app.get("/api/flags")
    def api_flags() -> dict[str, Any]:
        flags = flag_service.snapshot()
        return {
            "counts": asdict(flag_service.counts()),
            "flags": [_flags_payload(f) for f in flags.values()],
        }

    @app.post("/api/flags/{video_id}")
    def api_set_flag(video_id: str, req: FlagUpdateRequest) -> dict[str, Any]:
        if current_query_service().get(video_id) is None:
            raise HTTPException(status_code=404, detail=f"Video not found: {video_id}")
        try:
            if req.value is None:
                flags = flag_service.toggle_flag(video_id, req.key)
            else:
                flags = flag_service.set_flag(video_id, req.key, req.value)
        except FlagError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _flags_payload(flags)

    return app


def _flags_payload(flags: VideoFlags | None) -> dict[str, Any] | None:
    if flags is None:
        return None
    return {
        "id": flags.id,
        "watched": flags.watched,
        "watch_later": flags.watch_later,
        "favorite": flags.favorite,
        "updated_at": flags.updated_at,
    }


def _video_payload(video: Video, flags: VideoFlags | None) -> dict[str, Any]:
    payload = asdict(video)
    payload["topics"] = list(video.topics)
    payload["duration_label"] = format_duration(video.duration_seconds, video.duration)
    payload["duration_bucket"] = duration_bucket(video.duration_seconds)
    payload["views"] = parse_number_loose(video.view_count)
    payload["subscribers"] = parse_number_loose(video.subscription_count)
    payload["thumbnails"] = thumbnail_urls(video.video_id)
    payload["flags"] = _flags_payload(flags)
    return payload
