"""
Services module for tagallery application.

This module contains all service classes that handle business logic:
- CloudIAPAuthService: Cloud IAP authentication
- StorageService: Google Cloud Storage operations
- ImageProcessor: validation of uploaded image files
- MetadataService: DuckDB metadata management
- GalleryService: per-user gallery management
- UploadPipeline: storage and metadata writes for dropped files
"""

from .auth import CloudIAPAuthService, UserInfo
from .galleries import GalleryService
from .image_processor import ImageProcessor
from .metadata import MetadataService
from .storage import StorageService
from .upload import FileUpload, FileUploadResult, UploadBatchResult, UploadPipeline

__all__ = [
    "CloudIAPAuthService",
    "UserInfo",
    "GalleryService",
    "ImageProcessor",
    "MetadataService",
    "StorageService",
    "FileUpload",
    "FileUploadResult",
    "UploadBatchResult",
    "UploadPipeline",
]
