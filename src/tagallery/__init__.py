"""
tagallery - Tagged image gallery web application with Streamlit

A web application for organising images into named galleries with features including:
- Image upload into Google Cloud Storage with per-file failure isolation
- Tag filtering with OR semantics across the active tags
- Bulk tag editing for a selection of images
- Metadata management with DuckDB
- Cloud IAP authentication
"""

__version__ = "0.1.0"
__author__ = "tagallery"
__description__ = "Tagged image gallery web application with Streamlit"
