"""
Upload Module

Image validation and forwarding to the object-storage provider.
"""

from storefront.uploads.cloudinary_client import CloudinaryClient
from storefront.uploads.uploader import (
    AssetUploader,
    ImageSource,
    DEFAULT_ALLOWED_TYPES,
    DEFAULT_MAX_SIZE,
    MAX_FILES,
)

__all__ = [
    "CloudinaryClient",
    "AssetUploader",
    "ImageSource",
    "DEFAULT_ALLOWED_TYPES",
    "DEFAULT_MAX_SIZE",
    "MAX_FILES",
]
