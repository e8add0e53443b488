"""Manifest persistence backends.

Only the filesystem backend is imported eagerly; the S3 backend is loaded by the
facade when selected.
"""

from .base import MANIFEST_SUFFIX, ManifestStore, manifest_file_name
from .filesystem import FilesystemManifestStore

__all__ = [
    "FilesystemManifestStore",
    "MANIFEST_SUFFIX",
    "ManifestStore",
    "manifest_file_name",
]
