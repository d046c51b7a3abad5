"""
Attachment blob storage for Workboard.
"""

from .blob import BlobRef, BlobStore, FileBlobStore, get_blob_store

__all__ = ["BlobRef", "BlobStore", "FileBlobStore", "get_blob_store"]
