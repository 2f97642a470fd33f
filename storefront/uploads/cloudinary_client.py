"""
Cloudinary Client

Async wrapper around the cloudinary SDK:
- Account configured once from settings
- Uploads from in-memory bytes
- Destroy by public id

The SDK is blocking, so each call runs in a worker thread. Responses are
returned as the provider sent them.
"""

import asyncio
import io
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from loguru import logger

from ..exceptions import ExternalServiceError


class CloudinaryClient:
    """
    Client for Cloudinary's upload API.

    Usage:
        client = CloudinaryClient("demo", "api-key", "api-secret")
        result = await client.upload(data, "photo.png", folder="uploads/images")
        await client.destroy(result["public_id"])
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
    ):
        """
        Initialize client and configure the SDK account.

        Args:
            cloud_name: Cloudinary cloud name
            api_key: API key
            api_secret: API secret used for request signatures
            timeout: Socket timeout handed to the SDK, in seconds
        """
        self.cloud_name = cloud_name
        self.timeout = timeout

        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def upload(
        self,
        data: bytes,
        filename: str,
        folder: Optional[str] = None,
        resource_type: str = "auto",
    ) -> dict:
        """
        Upload a file.

        Args:
            data: File bytes
            filename: Name reported to the provider
            folder: Target folder at the provider
            resource_type: "image", "raw" or "auto"

        Returns:
            Provider response (public_id, secure_url, bytes, format, ...)
        """
        options = {"resource_type": resource_type, "filename": filename, "timeout": self.timeout}
        if folder:
            options["folder"] = folder

        return await self._call("upload", cloudinary.uploader.upload, io.BytesIO(data), **options)

    async def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        """
        Delete a stored asset.

        Returns:
            Provider response, e.g. {"result": "ok"} or {"result": "not found"}
        """
        return await self._call(
            "destroy",
            cloudinary.uploader.destroy,
            public_id,
            resource_type=resource_type,
            timeout=self.timeout,
        )

    async def _call(self, action: str, func, *args, **options) -> dict:
        """Run a blocking SDK call in a thread, mapping SDK errors to 502."""
        try:
            return await asyncio.to_thread(func, *args, **options)
        except cloudinary.exceptions.Error as e:
            message = str(e) or f"{action} failed"
            logger.error(f"Cloudinary {action} failed: {message}")
            raise ExternalServiceError("Cloudinary", detail=message)
