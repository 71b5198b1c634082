"""API endpoints for media uploads (admin only, one file per request)."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from cinestream.api.v1.dependencies import require_admin
from cinestream.models.auth import AdminPrincipal
from cinestream.models.upload import ImageUploadResponse, VideoUploadResponse
from cinestream.services import upload_service

router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post("/video", response_model=VideoUploadResponse, summary="Upload a video")
async def upload_video(
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
    video: Optional[UploadFile] = File(None),
    quality: str = Form("720p"),
):
    """Store a video rendition and return its key; attach it via ``videoUrls``."""

    key = await upload_service.upload_media(
        video, field_name="video", media_type="video"
    )
    return VideoUploadResponse(key=key, quality=quality)


@router.post("/image", response_model=ImageUploadResponse, summary="Upload an image")
async def upload_image(
    admin: Annotated[AdminPrincipal, Depends(require_admin)],
    image: Optional[UploadFile] = File(None),
    image_type: str = Form("poster", alias="type"),
):
    key = await upload_service.upload_media(
        image, field_name="image", media_type="image"
    )
    return ImageUploadResponse(key=key, type=image_type)
