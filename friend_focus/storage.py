"""
Photo storage: local filesystem, S3-compatible buckets, and in-memory testing.

Photos are stored flat as `<friend_id>.jpg`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "png": "image/png",
    "webp": "image/webp",
}
DEFAULT_CONTENT_TYPE = "image/jpeg"


def photo_filename(friend_id: str) -> str:
    return f"{friend_id}.jpg"


def content_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and ".." not in filename and "/" not in filename


class PhotoStore(Protocol):
    """Defines the operations the API needs from photo storage."""

    def save(self, friend_id: str, data: bytes) -> str:
        ...

    def read(self, filename: str) -> bytes:
        ...

    def exists(self, filename: str) -> bool:
        ...

    def delete(self, filename: str) -> None:
        ...


@dataclass
class LocalPhotoStore:
    """Stores photos in a directory that is created on first write."""

    base_dir: str

    def _path(self, filename: str) -> str:
        return os.path.join(self.base_dir, filename)

    def ensure_dir(self) -> None:
        os.makedirs(self.base_dir, exist_ok=True)

    def save(self, friend_id: str, data: bytes) -> str:
        self.ensure_dir()
        filename = photo_filename(friend_id)
        with open(self._path(filename), "wb") as f:
            f.write(data)
        return filename

    def read(self, filename: str) -> bytes:
        with open(self._path(filename), "rb") as f:
            return f.read()

    def exists(self, filename: str) -> bool:
        return os.path.isfile(self._path(filename))

    def delete(self, filename: str) -> None:
        # Best-effort: a leaked file only costs disk space.
        try:
            os.remove(self._path(filename))
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to delete photo %s: %s", filename, exc)


@dataclass
class InMemoryPhotoStore:
    """Test double for photo storage."""

    stored_objects: dict[str, bytes] = field(default_factory=dict)

    def save(self, friend_id: str, data: bytes) -> str:
        filename = photo_filename(friend_id)
        self.stored_objects[filename] = data
        return filename

    def read(self, filename: str) -> bytes:
        stored = self.stored_objects.get(filename)
        if stored is None:
            raise FileNotFoundError(filename)
        return stored

    def exists(self, filename: str) -> bool:
        return filename in self.stored_objects

    def delete(self, filename: str) -> None:
        self.stored_objects.pop(filename, None)


@dataclass
class S3PhotoStore:
    """
    S3-compatible photo storage (AWS S3, Tencent COS, MinIO).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    prefix: str = "photos/"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _key(self, filename: str) -> str:
        return f"{self.prefix}{filename}"

    def save(self, friend_id: str, data: bytes) -> str:
        filename = photo_filename(friend_id)
        self._client.put_object(
            Bucket=self.bucket,
            Key=self._key(filename),
            Body=data,
            ContentType=content_type_for(filename),
        )
        return filename

    def read(self, filename: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self._key(filename))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise FileNotFoundError(filename) from exc
            raise
        return response["Body"].read()

    def exists(self, filename: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=self._key(filename))
        except ClientError:
            return False
        return True

    def delete(self, filename: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=self._key(filename))
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Failed to delete photo %s: %s", filename, exc)
