"""
Database schema definitions for tagallery application.

This module contains SQL schema definitions for the DuckDB metadata store.
DuckDB does not cascade deletes, so child rows (images, tags, image_tags)
are removed explicitly by the metadata service.
"""

GALLERIES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS galleries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

IMAGES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS images (
    id TEXT PRIMARY KEY,
    gallery_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    storage_path TEXT NOT NULL,
    public_url TEXT NOT NULL,
    alt_text TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

TAGS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS tags (
    gallery_id TEXT NOT NULL,
    name TEXT NOT NULL,
    position INTEGER NOT NULL,
    PRIMARY KEY (gallery_id, name)
);
"""

IMAGE_TAGS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS image_tags (
    image_id TEXT NOT NULL,
    tag TEXT NOT NULL,
    PRIMARY KEY (image_id, tag)
);
"""

TABLE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_galleries_user_id ON galleries(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_images_gallery_position ON images(gallery_id, position);",
]

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "galleries": {"id", "user_id", "name", "description", "created_at"},
    "images": {"id", "gallery_id", "position", "storage_path", "public_url", "alt_text", "created_at"},
    "tags": {"gallery_id", "name", "position"},
    "image_tags": {"image_id", "tag"},
}

TABLE_SCHEMAS = {
    "galleries": GALLERIES_TABLE_SCHEMA,
    "images": IMAGES_TABLE_SCHEMA,
    "tags": TAGS_TABLE_SCHEMA,
    "image_tags": IMAGE_TAGS_TABLE_SCHEMA,
}

ALL_SCHEMA_STATEMENTS = list(TABLE_SCHEMAS.values()) + TABLE_INDEXES


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables and indexes
    """
    return ALL_SCHEMA_STATEMENTS


def validate_schema_compatibility() -> bool:
    """
    Validate that every column the models rely on appears in its table definition.

    Returns:
        True if schema is compatible, False otherwise
    """
    for table, columns in REQUIRED_COLUMNS.items():
        schema_lower = TABLE_SCHEMAS[table].lower()
        if any(column not in schema_lower for column in columns):
            return False

    return True
