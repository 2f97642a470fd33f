"""
Upload metadata persistence.

Rows are written after a successful provider upload. Nothing deletes them
when the referencing entity goes away.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from .database import Database
from .models import UploadModel


@dataclass
class StoredUpload:
    """Persisted upload metadata."""

    id: str
    public_id: str
    secure_url: str
    original_filename: Optional[str] = None
    bytes: Optional[int] = None
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: UploadModel) -> "StoredUpload":
        return cls(
            id=model.id,
            public_id=model.public_id,
            secure_url=model.secure_url,
            original_filename=model.original_filename,
            bytes=model.bytes,
            format=model.format,
            width=model.width,
            height=model.height,
            created_at=model.created_at,
        )


class UploadRepository:
    """Repository for upload metadata."""

    def __init__(self, database: Database):
        self.database = database

    def record(self, provider_response: dict) -> StoredUpload:
        """
        Store the metadata of a provider upload response.

        Args:
            provider_response: Cloudinary upload result

        Returns:
            Created StoredUpload
        """
        with self.database.get_session() as session:
            upload = UploadModel(
                public_id=provider_response["public_id"],
                secure_url=provider_response["secure_url"],
                original_filename=provider_response.get("original_filename"),
                bytes=provider_response.get("bytes"),
                format=provider_response.get("format"),
                width=provider_response.get("width"),
                height=provider_response.get("height"),
            )
            session.add(upload)
            session.commit()
            session.refresh(upload)

            logger.info(f"Recorded upload {upload.public_id}")
            return StoredUpload.from_model(upload)

    def get_by_public_id(self, public_id: str) -> Optional[StoredUpload]:
        with self.database.get_session() as session:
            upload = session.query(UploadModel).filter(
                UploadModel.public_id == public_id,
            ).first()

            if upload:
                return StoredUpload.from_model(upload)
            return None

    def list_all(self, limit: int = 100, offset: int = 0) -> list[StoredUpload]:
        with self.database.get_session() as session:
            uploads = session.query(UploadModel).order_by(
                UploadModel.created_at.desc(),
            ).offset(offset).limit(limit).all()

            return [StoredUpload.from_model(u) for u in uploads]
