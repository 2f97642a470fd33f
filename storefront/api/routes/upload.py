"""
Upload API Routes

Image uploads forwarded to Cloudinary. Provider responses are relayed
unchanged.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from ...uploads.uploader import AssetUploader, ImageSource
from ..dependencies import get_asset_uploader
from ..guards import require_user
from ..schemas import DeleteMultipleRequest, DeleteUploadRequest, ErrorResponse


router = APIRouter(
    prefix="/upload",
    tags=["upload"],
    dependencies=[Depends(require_user)],
)

UPLOAD_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid file type or size"},
    502: {"model": ErrorResponse, "description": "Provider rejected the request"},
    504: {"model": ErrorResponse, "description": "Provider timed out"},
}


async def to_image_source(file: UploadFile) -> ImageSource:
    data = await file.read()
    return ImageSource(
        data=data,
        filename=file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
    )


@router.post("/single", responses=UPLOAD_ERRORS)
async def upload_single(
    file: UploadFile = File(..., description="Image file (jpeg, png, gif)"),
    uploader: AssetUploader = Depends(get_asset_uploader),
):
    return await uploader.upload_image(await to_image_source(file))


@router.post("/multiple", responses=UPLOAD_ERRORS)
async def upload_multiple(
    files: list[UploadFile] = File(..., description="Up to 10 image files"),
    uploader: AssetUploader = Depends(get_asset_uploader),
):
    """Upload several images. Fails as a whole if any upload fails."""
    sources = [await to_image_source(f) for f in files]
    return await uploader.upload_multiple(sources)


@router.delete("/delete", responses=UPLOAD_ERRORS)
async def delete_upload(
    body: DeleteUploadRequest,
    uploader: AssetUploader = Depends(get_asset_uploader),
):
    return await uploader.delete_image(body.public_id)


@router.delete("/delete-multiple", responses=UPLOAD_ERRORS)
async def delete_multiple(
    body: DeleteMultipleRequest,
    uploader: AssetUploader = Depends(get_asset_uploader),
):
    """Delete several assets; each id reports its own outcome."""
    return await uploader.delete_multiple(body.public_ids)
