"""Project lifecycle triggers.

On creation a shareable link is issued automatically. On deletion the project
and all of its comments are removed as one atomic batch, and the project's
blobs are cleaned up, on the arq worker when a job producer is available and
inline otherwise.
"""

import logging

from ..domain.models import Project
from ..repositories.interfaces import ProjectRepository
from .job_producer import JobProducer
from .share_link_service import ShareLinkService
from .storage_service import LocalBlobStorage

logger = logging.getLogger(__name__)


class ProjectLifecycle:
    """Runs the side effects tied to project creation and deletion."""

    def __init__(
        self,
        project_repository: ProjectRepository,
        share_links: ShareLinkService | None = None,
        job_producer: JobProducer | None = None,
        storage: LocalBlobStorage | None = None,
    ):
        self.project_repository = project_repository
        self.share_links = share_links or ShareLinkService(project_repository)
        self.job_producer = job_producer
        self.storage = storage

    def on_created(self, project: Project) -> Project:
        """Issue a shareable link if the project was created without one."""
        if project.has_shareable_link():
            return project
        project.shareable_link = self.share_links.issue(project.project_id)
        return project

    def on_deleted(self, project_id: str) -> int:
        """Remove the project together with every comment under it."""
        return self.project_repository.delete_with_comments(project_id)

    async def schedule_asset_cleanup(self, project_id: str) -> None:
        """Delete the project's videos and thumbnails.

        Failures are logged; the project itself is already gone and stays gone.
        """
        if self.job_producer is not None:
            try:
                await self.job_producer.enqueue_asset_cleanup(project_id)
            except Exception as e:
                logger.error(
                    f"Failed to enqueue asset cleanup for project {project_id}: {e}",
                    exc_info=True,
                )
            return

        if self.storage is not None:
            try:
                removed = self.storage.delete_project_assets(project_id)
                logger.info(f"Removed {removed} blobs for project {project_id}")
            except OSError as e:
                logger.error(
                    f"Failed to clean up assets for project {project_id}: {e}",
                    exc_info=True,
                )
