"""
Models module for tagallery application.

This module contains data models and schemas:
- Image / ImageRecord: in-memory image and its database row
- Gallery: a named gallery owned by a user
- DatabaseManager: Database connection and schema management
"""

from .database import DatabaseManager, create_database, get_database_manager
from .gallery import Gallery, validate_gallery_fields
from .image import Image, ImageId, ImageRecord, normalize_tags
from .schema import get_schema_statements, validate_schema_compatibility

__all__ = [
    "Image",
    "ImageId",
    "ImageRecord",
    "normalize_tags",
    "Gallery",
    "validate_gallery_fields",
    "DatabaseManager",
    "create_database",
    "get_database_manager",
    "get_schema_statements",
    "validate_schema_compatibility",
]
