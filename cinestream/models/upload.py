"""Response models for media uploads."""

from pydantic import BaseModel


class VideoUploadResponse(BaseModel):
    message: str = "Video uploaded successfully"
    key: str
    quality: str


class ImageUploadResponse(BaseModel):
    message: str = "Image uploaded successfully"
    key: str
    type: str


__all__ = ["VideoUploadResponse", "ImageUploadResponse"]
