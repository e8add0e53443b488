"""S3-compatible manifest store (ESL_PIPELINE_MANIFEST_STORE=s3).

Keys mirror the document's location relative to a root directory so that two
documents with the same file name in different folders do not collide.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import ClientError

from ..errors import ManifestError
from ..models.manifest import AssignmentManifest
from ..parsing import normalize_prefix
from .base import ManifestStore, manifest_file_name

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def is_not_found_error(exc: ClientError) -> bool:
    """Return whether a client error represents a missing object."""

    response: dict[str, Any] = exc.response or {}
    code = str(response.get("Error", {}).get("Code", ""))
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in _NOT_FOUND_CODES or status == 404


class S3ManifestStore(ManifestStore):
    """Store manifests as JSON objects in an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str | None = None,
        region: str | None = None,
        root_dir: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            bucket: Target bucket name.
            prefix: Key prefix for all manifests (trailing slash optional).
            region: AWS region, boto3 default chain when unset.
            root_dir: Directory that document paths are keyed relative to.
            endpoint_url: Custom endpoint for MinIO or other compatible storage.
            client: Pre-built S3 client, mainly for tests.
        """

        if not bucket:
            raise ValueError("S3ManifestStore requires a bucket.")
        self.bucket = bucket
        self.prefix = normalize_prefix(prefix)
        self.root_dir = Path(root_dir).resolve() if root_dir else None
        if client is None:
            kwargs: dict[str, str] = {}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)
        self._s3 = client

    def object_key_for(self, md_path: str) -> str:
        """Return the object key for a document's manifest."""

        relative_dir = self._relative_dir(md_path)
        parts = [part for part in (self.prefix, relative_dir) if part]
        parts.append(manifest_file_name(md_path))
        return "/".join(parts)

    def manifest_path_for(self, md_path: str) -> str:
        """Return the `s3://bucket/key` URI for a document's manifest."""

        return f"s3://{self.bucket}/{self.object_key_for(md_path)}"

    def write_manifest(self, md_path: str, manifest: AssignmentManifest) -> str:
        """Replace the whole manifest object and return its URI."""

        body = json.dumps(manifest.to_payload(), ensure_ascii=False, indent=2)
        self._s3.put_object(
            Bucket=self.bucket,
            Key=self.object_key_for(md_path),
            Body=body.encode("utf-8"),
            ContentType="application/json",
        )
        return self.manifest_path_for(md_path)

    def read_manifest(self, md_path: str) -> AssignmentManifest | None:
        """Load the manifest; not-found and corrupt bodies yield `None`.

        Raises:
            ClientError: For any failure other than a missing object.
        """

        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=self.object_key_for(md_path))
        except ClientError as exc:
            if is_not_found_error(exc):
                return None
            raise
        raw = response["Body"].read()
        try:
            return AssignmentManifest.from_payload(json.loads(raw))
        except (ValueError, ManifestError):
            return None

    def _relative_dir(self, md_path: str) -> str:
        """Return the document directory relative to the root, or `""` outside it."""

        if self.root_dir is None:
            return ""
        document_dir = Path(md_path).resolve().parent
        try:
            relative = document_dir.relative_to(self.root_dir)
        except ValueError:
            return ""
        text = relative.as_posix()
        return "" if text == "." else text
