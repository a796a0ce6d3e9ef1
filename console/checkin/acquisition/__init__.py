"""Code acquisition: camera stream and uploaded image sources."""
from .base import AcquisitionSource
from .camera import CameraStreamSource
from .handle import AcquisitionHandle, open_handle_count
from .upload import ImageUploadSource

__all__ = [
    "AcquisitionHandle",
    "AcquisitionSource",
    "CameraStreamSource",
    "ImageUploadSource",
    "open_handle_count",
]
