from __future__ import annotations

from essayhall.application.services.archive_service import ArchiveService
from essayhall.application.services.flag_service import FlagService
from essayhall.application.services.project_service import ProjectService
from essayhall.application.services.query_service import QueryService
from essayhall.cli.context import CLIContext
from essayhall.core.errors import ProjectNotInitializedError
from essayhall.infrastructure.db.repos.flag_repo import FlagRepo
from essayhall.infrastructure.db.repos.video_repo import VideoRepo


def require_initialized_project(ctx: CLIContext) -> None:
    project_service = ProjectService(ctx.paths)
    if not project_service.is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'essayhall init' first in {ctx.paths.project_root}"
        )
    project_service.init_project()


def archive_service(ctx: CLIContext) -> ArchiveService:
    return ArchiveService(
        video_repo=VideoRepo(ctx.paths.db_path),
        flag_repo=FlagRepo(ctx.paths.db_path),
        source=ctx.paths.archive_source,
    )


def flag_service(ctx: CLIContext) -> FlagService:
    return FlagService(FlagRepo(ctx.paths.db_path))


def query_service(ctx: CLIContext) -> QueryService:
    return QueryService(VideoRepo(ctx.paths.db_path).get_all())
