"""Blob storage for project videos and thumbnails.

Blobs are addressed as ``videos/{projectId}/{fileName}`` and
``thumbnails/{projectId}/{fileName}`` under a local root directory. Download
URLs are built from a public base URL that the file controller serves.
"""

import logging
import os
import time
import uuid
from collections.abc import AsyncIterable, Callable
from pathlib import Path
from urllib.parse import quote

from ..domain.exceptions import InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)

VIDEOS = "videos"
THUMBNAILS = "thumbnails"
BLOB_KINDS = (VIDEOS, THUMBNAILS)

ProgressCallback = Callable[[float], None]


class LocalBlobStorage:
    """Filesystem-backed blob store."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload_video(
        self,
        project_id: str,
        chunks: AsyncIterable[bytes],
        file_name: str,
        total_size: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Store a video and return its download URL.

        Args:
            project_id: Owning project
            chunks: Byte chunks of the file
            file_name: Name of the blob within the project's folder
            total_size: Expected size in bytes, enables progress reporting
            on_progress: Called with a 0-100 percentage after each chunk
        """
        return await self._upload(
            VIDEOS, project_id, file_name, chunks, total_size, on_progress
        )

    async def upload_thumbnail(
        self,
        project_id: str,
        chunks: AsyncIterable[bytes],
        file_name: str | None = None,
    ) -> str:
        """Store a thumbnail image and return its download URL."""
        name = file_name or f"thumb_{int(time.time() * 1000)}.jpg"
        return await self._upload(THUMBNAILS, project_id, name, chunks, None, None)

    def get_video_url(self, project_id: str, file_name: str) -> str:
        return self.get_download_url(VIDEOS, project_id, file_name)

    def get_thumbnail_url(self, project_id: str, file_name: str) -> str:
        return self.get_download_url(THUMBNAILS, project_id, file_name)

    def get_download_url(self, kind: str, project_id: str, file_name: str) -> str:
        """Resolve the download URL of an existing blob.

        Raises:
            NotFoundError: If the blob does not exist
        """
        self.resolve_path(kind, project_id, file_name)
        return self._url(kind, project_id, file_name)

    def resolve_path(self, kind: str, project_id: str, file_name: str) -> Path:
        """Get the filesystem path of an existing blob."""
        path = self._path(kind, project_id, file_name)
        if not path.is_file():
            raise NotFoundError("file", f"{kind}/{project_id}/{file_name}")
        return path

    def video_exists(self, project_id: str, file_name: str) -> bool:
        return self._path(VIDEOS, project_id, file_name).is_file()

    def get_video_metadata(self, project_id: str, file_name: str) -> dict:
        """Describe a stored video."""
        path = self.resolve_path(VIDEOS, project_id, file_name)
        return {
            "name": file_name,
            "path": f"{VIDEOS}/{project_id}/{file_name}",
            "project_id": project_id,
            "size": path.stat().st_size,
        }

    def list_project_videos(self, project_id: str) -> list[str]:
        """Get download URLs of every video stored for a project."""
        folder = self._folder(VIDEOS, project_id)
        if not folder.is_dir():
            return []
        return [
            self._url(VIDEOS, project_id, entry.name)
            for entry in sorted(folder.iterdir())
            if entry.is_file() and not entry.name.startswith(".")
        ]

    def delete_video(self, project_id: str, file_name: str) -> None:
        """Delete a stored video.

        Raises:
            NotFoundError: If the video does not exist
        """
        self.resolve_path(VIDEOS, project_id, file_name).unlink()
        logger.info(f"Deleted video {file_name} of project {project_id}")

    def delete_project_assets(self, project_id: str) -> int:
        """Delete every video and thumbnail of a project.

        Returns:
            Number of files removed
        """
        removed = 0
        for kind in BLOB_KINDS:
            folder = self._folder(kind, project_id)
            if not folder.is_dir():
                continue
            for entry in folder.iterdir():
                if not entry.is_file():
                    continue
                # Leftovers of interrupted uploads are not counted as blobs
                entry.unlink(missing_ok=True)
                if not entry.name.endswith(".part"):
                    removed += 1
            try:
                folder.rmdir()
            except OSError as e:
                # An upload still in flight may have recreated a temp file
                logger.warning(f"Could not remove {folder}: {e}")
        return removed

    async def _upload(
        self,
        kind: str,
        project_id: str,
        file_name: str,
        chunks: AsyncIterable[bytes],
        total_size: int | None,
        on_progress: ProgressCallback | None,
    ) -> str:
        target = self._path(kind, project_id, file_name)
        target.parent.mkdir(parents=True, exist_ok=True)

        # Write to a hidden temp file first so readers never see a partial blob
        partial = target.with_name(f".{target.name}.{uuid.uuid4().hex}.part")
        written = 0
        try:
            with open(partial, "wb") as handle:
                async for chunk in chunks:
                    if not chunk:
                        continue
                    handle.write(chunk)
                    written += len(chunk)
                    if on_progress and total_size:
                        on_progress(min(100.0, written / total_size * 100))
            os.replace(partial, target)
        finally:
            if partial.exists():
                partial.unlink()

        if on_progress:
            on_progress(100.0)
        logger.info(
            f"Stored {kind[:-1]} {file_name} for project {project_id} ({written} bytes)"
        )
        return self._url(kind, project_id, file_name)

    def _folder(self, kind: str, project_id: str) -> Path:
        if kind not in BLOB_KINDS:
            raise InvalidArgumentError("kind", f"must be one of: {', '.join(BLOB_KINDS)}")
        _check_component("project_id", project_id)
        return self.root / kind / project_id

    def _path(self, kind: str, project_id: str, file_name: str) -> Path:
        _check_component("file_name", file_name)
        return self._folder(kind, project_id) / file_name

    def _url(self, kind: str, project_id: str, file_name: str) -> str:
        return (
            f"{self.public_base_url}/{kind}/{quote(project_id, safe='')}/"
            f"{quote(file_name, safe='')}"
        )


def _check_component(parameter: str, value: str) -> None:
    """Blob names are single path components, never paths."""
    if (
        not value
        or value in (".", "..")
        or "/" in value
        or "\\" in value
        or value.startswith(".")
        or "\x00" in value
    ):
        raise InvalidArgumentError(parameter, "must be a plain file name")
