from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from ..auth import get_current_identity
from ..dependencies import get_profile_service
from ..models import Identity
from ..schemas import ErrorResponse, ImageUploadResponse, ProfileOut
from ..services import ProfileService

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
    dependencies=[Depends(get_current_identity)],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"}},
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ProfileOut,
    summary="Get Profile",
    description="Return the caller's email, image path and task statistics.",
    responses={
        200: {"description": "Profile found"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
def get_profile(
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileOut:
    """
    Profile of the authenticated user with total/completed task counts.
    """
    return ProfileOut(**service.get_profile(identity.id))


# PUBLIC_INTERFACE
@router.post(
    "/image",
    response_model=ImageUploadResponse,
    summary="Upload Profile Image",
    description="Upload a JPEG, PNG or GIF (at most 5 MiB) as multipart field 'image'.",
    responses={
        200: {"description": "Image updated"},
        400: {"model": ErrorResponse, "description": "Missing, oversized or unsupported file"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
def upload_profile_image(
    image: Optional[UploadFile] = File(None, description="Image file (jpeg, png or gif)"),
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ImageUploadResponse:
    """
    Store a new profile image and return its relative path.
    """
    data = None
    filename = None
    content_type = None
    if image is not None:
        # One byte past the limit is enough to know the upload is too large.
        data = image.file.read(service.max_image_bytes + 1)
        filename = image.filename
        content_type = image.content_type
    path = service.update_image(identity.id, data, filename, content_type)
    return ImageUploadResponse(message="Image updated", image=path)
