"""S3 object store used for movie media.

The catalog never stores URLs: uploads return an object *key*, and reads
exchange each key for a short-lived presigned ``GET`` URL.  This module is a
thin wrapper over boto3 so failure modes stay familiar; every SDK error is
re-raised as :class:`S3StorageError`.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, Optional
import logging
import re
import time

import boto3
from botocore.config import Config as BotoConfig

from cinestream.core.config import settings
from cinestream.metrics import OBJECT_STORE_DURATION_SECONDS

logger = logging.getLogger(__name__)


class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (bad key, credentials, network)."""


# Readable keys that are safe across tools, CDNs and logs.
_KEY_ALLOWED_RE = re.compile(r"[A-Za-z0-9._\-/+=@() ]+")


def normalize_key(key: str) -> str:
    """Strip, drop the leading ``/`` and collapse ``//`` runs.

    Raises
    ------
    S3StorageError
        If the key is empty, contains ``..`` or disallowed characters.
    """
    k = str(key or "").strip().lstrip("/")
    k = re.sub(r"/{2,}", "/", k)
    if not k:
        raise S3StorageError("Invalid storage key: empty")
    if ".." in k:
        raise S3StorageError("Invalid storage key: path traversal detected")
    if not _KEY_ALLOWED_RE.fullmatch(k):
        raise S3StorageError("Invalid storage key: contains forbidden characters")
    return k


class ObjectStore:
    """S3 bucket wrapper exposing upload and presigned download.

    Credentials come from settings when both key id and secret are set,
    otherwise from the standard AWS credential chain (env, profile, role).
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket or settings.AWS_BUCKET_NAME
        if not self.bucket:
            raise S3StorageError("AWS_BUCKET_NAME not configured")

        if client is not None:
            self.client = client
            return

        cfg = BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": 5, "mode": "standard"},
            connect_timeout=3,
            read_timeout=60,
        )
        client_kwargs: Dict[str, Any] = {"config": cfg}
        region = region_name or settings.AWS_REGION
        endpoint = endpoint_url or settings.AWS_S3_ENDPOINT_URL
        if region:
            client_kwargs["region_name"] = region
        if endpoint:
            client_kwargs["endpoint_url"] = endpoint
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            client_kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
            client_kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
            if settings.AWS_SESSION_TOKEN:
                client_kwargs["aws_session_token"] = settings.AWS_SESSION_TOKEN

        try:
            self.client = boto3.client("s3", **client_kwargs)
        except Exception as e:  # pragma: no cover
            raise S3StorageError(f"Failed to create S3 client: {e}") from e

    def __repr__(self) -> str:
        return f"ObjectStore(bucket={self.bucket})"

    # ------------------------------------------------------------------
    # Signed URLs
    # ------------------------------------------------------------------

    def presigned_get(self, key: str, *, expires_in: Optional[int] = None) -> str:
        """Return a presigned GET URL for *key*.

        Pure computation on the client side: nothing is written to the
        bucket.  ``expires_in`` defaults to ``SIGNED_URL_EXPIRE_SECONDS``.
        """
        k = normalize_key(key)
        ttl = int(expires_in or settings.SIGNED_URL_EXPIRE_SECONDS)
        start = time.perf_counter()
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": k},
                ExpiresIn=ttl,
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned GET: {e}") from e
        finally:
            OBJECT_STORE_DURATION_SECONDS.labels(operation="sign").observe(
                time.perf_counter() - start
            )

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def upload_fileobj(
        self,
        key: str,
        fileobj: BinaryIO,
        *,
        content_type: str,
        field_name: str,
        cache_control: Optional[str] = None,
    ) -> str:
        """Stream *fileobj* to the bucket under *key* and return the stored key."""
        k = normalize_key(key)
        extra_args: Dict[str, Any] = {
            "ContentType": content_type,
            "Metadata": {"fieldName": field_name},
        }
        if cache_control:
            extra_args["CacheControl"] = cache_control

        start = time.perf_counter()
        try:
            self.client.upload_fileobj(fileobj, self.bucket, k, ExtraArgs=extra_args)
        except Exception as e:
            raise S3StorageError(f"Failed to upload object: {e}") from e
        finally:
            OBJECT_STORE_DURATION_SECONDS.labels(operation="upload").observe(
                time.perf_counter() - start
            )
        logger.info("Uploaded object %s to bucket %s", k, self.bucket)
        return k


_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Return the process-wide :class:`ObjectStore`, creating it on first use."""
    global _store
    if _store is None:
        _store = ObjectStore()
    return _store
