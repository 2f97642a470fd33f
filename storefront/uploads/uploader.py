"""
Asset Uploader

Validates images and forwards them to the object-storage provider:
- MIME allow-list and size limit, checked before any network call
- Bounded wait per provider call (timeout is reported separately from
  provider errors)
- Optional persistence of upload metadata
"""

import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger
from starlette.concurrency import run_in_threadpool

from ..exceptions import BadRequestError, StorefrontException, UploadTimeoutError
from ..storage.upload_repository import UploadRepository
from .cloudinary_client import CloudinaryClient

MiB = 1024 * 1024

DEFAULT_ALLOWED_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})
DEFAULT_MAX_SIZE = 5 * MiB
MAX_FILES = 10


@dataclass
class ImageSource:
    """File bytes plus the metadata needed to validate and forward them."""

    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "ImageSource":
        """Read a file from disk, guessing the MIME type from its name."""
        path = Path(path)
        if not path.is_file():
            raise BadRequestError("File not found", detail=str(path))

        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        return cls(data=path.read_bytes(), filename=path.name, content_type=content_type)


SourceLike = Union[ImageSource, bytes, str, Path]


class AssetUploader:
    """
    Uploads images to Cloudinary.

    Usage:
        uploader = AssetUploader(CloudinaryClient(...), timeout=30)
        result = await uploader.upload_image(b"...", filename="a.png", content_type="image/png")
        result = await uploader.upload_image("/tmp/photo.jpg")
    """

    def __init__(
        self,
        client: CloudinaryClient,
        folder: str = "uploads/images",
        allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
        max_size_bytes: int = DEFAULT_MAX_SIZE,
        timeout: float = 30.0,
        repository: Optional[UploadRepository] = None,
    ):
        """
        Initialize uploader.

        Args:
            client: Provider client
            folder: Provider folder for new uploads
            allowed_types: Accepted MIME types
            max_size_bytes: Largest accepted file
            timeout: Seconds to wait for each provider call
            repository: Where to record upload metadata (None disables)
        """
        self.client = client
        self.folder = folder
        self.allowed_types = frozenset(allowed_types)
        self.max_size_bytes = max_size_bytes
        self.timeout = timeout
        self.repository = repository

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def to_source(
        source: SourceLike,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ImageSource:
        """Normalize bytes, paths and ImageSource into an ImageSource."""
        if isinstance(source, ImageSource):
            return source
        if isinstance(source, (bytes, bytearray)):
            if not content_type:
                raise BadRequestError("Missing content type", detail="In-memory uploads need a MIME type")
            return ImageSource(
                data=bytes(source),
                filename=filename or "upload",
                content_type=content_type,
            )
        return ImageSource.from_path(source, content_type=content_type)

    def validate(self, source: ImageSource) -> None:
        """
        Check type and size.

        Raises:
            BadRequestError: Disallowed MIME type, empty or oversized file
        """
        if source.content_type not in self.allowed_types:
            raise BadRequestError(
                "Invalid file type",
                detail=f"Unsupported file type: {source.content_type}. "
                       f"Supported: {', '.join(sorted(self.allowed_types))}",
            )

        if source.size == 0:
            raise BadRequestError("Empty file", detail=f"'{source.filename}' has no content")

        if source.size > self.max_size_bytes:
            raise BadRequestError(
                "File too large",
                detail=f"'{source.filename}' exceeds maximum size of "
                       f"{self.max_size_bytes // MiB}MB",
            )

    # =========================================================================
    # Provider calls
    # =========================================================================

    async def _bounded(self, coro, action: str):
        """Await a provider call, giving up after self.timeout seconds."""
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Cloudinary {action} timed out after {self.timeout}s")
            raise UploadTimeoutError(self.timeout)

    async def upload_image(
        self,
        source: SourceLike,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> dict:
        """
        Validate and upload one image.

        Args:
            source: Bytes, filesystem path or ImageSource
            filename: Name for in-memory data
            content_type: MIME type (guessed from the name for paths)

        Returns:
            Provider response, unchanged
        """
        image = self.to_source(source, filename=filename, content_type=content_type)
        self.validate(image)

        result = await self._send(image)
        await self._record([result])
        return result

    async def _send(self, image: ImageSource) -> dict:
        logger.info(f"Uploading {image.filename} ({image.size // 1024}KB, {image.content_type})")

        return await self._bounded(
            self.client.upload(image.data, image.filename, folder=self.folder),
            "upload",
        )

    async def _record(self, results: list[dict]) -> None:
        if self.repository is None:
            return
        for result in results:
            await run_in_threadpool(self.repository.record, result)

    async def upload_multiple(self, sources: list[SourceLike]) -> list[dict]:
        """
        Upload up to MAX_FILES images concurrently.

        Every file is validated before the first network call. If any upload
        fails, the ones that succeeded are destroyed again, nothing is
        recorded and the first error is raised.
        """
        if not sources:
            raise BadRequestError("No files provided for upload")
        if len(sources) > MAX_FILES:
            raise BadRequestError(f"Maximum {MAX_FILES} files are allowed")

        images = [self.to_source(s) for s in sources]
        for image in images:
            self.validate(image)

        logger.info(f"Uploading {len(images)} images")
        outcomes = await asyncio.gather(
            *(self._send(image) for image in images),
            return_exceptions=True,
        )

        errors = [o for o in outcomes if isinstance(o, BaseException)]
        if errors:
            uploaded = [o for o in outcomes if not isinstance(o, BaseException)]
            await self._rollback(uploaded)
            raise errors[0]

        results = list(outcomes)
        await self._record(results)
        return results

    async def _rollback(self, uploaded: list[dict]) -> None:
        """Destroy assets left behind by a failed batch."""
        if not uploaded:
            return

        logger.warning(f"Batch upload failed, removing {len(uploaded)} uploaded assets")
        outcomes = await asyncio.gather(
            *(self.delete_image(result["public_id"]) for result in uploaded),
            return_exceptions=True,
        )
        for result, outcome in zip(uploaded, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Could not remove {result['public_id']}: {outcome}")

    async def delete_image(self, public_id: str) -> dict:
        """Delete one asset at the provider. No local existence check."""
        if not public_id:
            raise BadRequestError("publicId is required")

        logger.info(f"Deleting asset: {public_id}")
        return await self._bounded(self.client.destroy(public_id), "destroy")

    async def delete_multiple(self, public_ids: list[str]) -> dict:
        """
        Delete several assets, best effort.

        Each id is attempted independently; the response lists the outcome of
        every id so partial failures are visible to the caller.

        Returns:
            {"results": [{"publicId", "status", "result" | "error"}], "deleted", "failed"}
        """
        if not public_ids:
            raise BadRequestError("No publicIds provided for deletion")
        if len(public_ids) > MAX_FILES:
            raise BadRequestError(f"Maximum {MAX_FILES} files are allowed")

        outcomes = await asyncio.gather(
            *(self.delete_image(public_id) for public_id in public_ids),
            return_exceptions=True,
        )

        results = []
        for public_id, outcome in zip(public_ids, outcomes):
            if isinstance(outcome, StorefrontException):
                results.append({"publicId": public_id, "status": "error", "error": outcome.message})
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                status = "ok" if outcome.get("result") == "ok" else "error"
                results.append({"publicId": public_id, "status": status, "result": outcome.get("result")})

        deleted = sum(1 for r in results if r["status"] == "ok")
        if deleted < len(results):
            logger.warning(f"Deleted {deleted}/{len(results)} assets")

        return {"results": results, "deleted": deleted, "failed": len(results) - deleted}
