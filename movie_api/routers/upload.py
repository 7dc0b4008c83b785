# movie_api/routers/upload.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from pydantic import BaseModel
from sqlmodel import Session

from movie_api.core.config import Settings
from movie_api.core.deps import get_blob_store, get_settings_from_app
from movie_api.core.responses import ApiResponse, ok
from movie_api.core.security import get_current_user
from movie_api.database import get_db
from movie_api.models.user import User
from movie_api.repositories.blob_store import BlobStore
from movie_api.services.upload_service import upload_image as svc_upload_image

router = APIRouter(prefix="/upload", tags=["upload"])


class UploadRead(BaseModel):
    image_url: str
    filename: str


@router.post(
    "/image",
    response_model=ApiResponse[UploadRead],
    status_code=status.HTTP_200_OK,
)
async def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Accept one image (jpg, jpeg, png, gif or webp, at most 5 MiB) and store it.
    The returned ``image_url`` is what a movie's ``image_url`` should be set to.
    """
    data = None
    content_type = None
    filename = None
    if image is not None:
        # read one byte past the limit, enough to know it is too large
        data = await image.read(settings.MAX_UPLOAD_BYTES + 1)
        content_type = image.content_type
        filename = image.filename

    stored = svc_upload_image(
        db,
        current_user.id,
        store,
        data,
        filename,
        content_type,
        settings.ALLOWED_IMAGE_TYPES,
        settings.MAX_UPLOAD_BYTES,
    )
    return ok(
        request,
        UploadRead(image_url=stored.image_url, filename=stored.filename),
        "Image uploaded successfully",
    )
