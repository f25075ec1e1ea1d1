"""
Media upload collaborator (avatars, cover images).

upload() never raises: a failed upload returns None and the route turns
that into a 400. The local temporary file is removed either way.
remove() deletes an object uploaded earlier in a request that then failed.
"""
from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from abc import ABC, abstractmethod

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class MediaUploader(ABC):
    """Upload a local file, return {"url": ...} or None."""

    @abstractmethod
    def upload(self, local_path: str | None) -> dict | None:
        ...

    @abstractmethod
    def remove(self, url: str | None) -> bool:
        ...


class S3MediaUploader(MediaUploader):
    """Uploads to any S3-compatible bucket (AWS S3, R2, MinIO)."""

    def __init__(
        self,
        bucket: str,
        public_url: str = "",
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str = "auto",
        client=None,
    ):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
            config=Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
        )

    @classmethod
    def from_config(cls, config) -> "S3MediaUploader":
        return cls(
            bucket=config["MEDIA_BUCKET"],
            public_url=config.get("MEDIA_PUBLIC_URL", ""),
            endpoint_url=config.get("MEDIA_ENDPOINT_URL"),
            access_key_id=config.get("MEDIA_ACCESS_KEY_ID"),
            secret_access_key=config.get("MEDIA_SECRET_ACCESS_KEY"),
            region=config.get("MEDIA_REGION", "auto"),
        )

    def _url_for(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload(self, local_path: str | None) -> dict | None:
        if not local_path:
            return None
        key = f"media/{os.path.basename(local_path)}"
        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        try:
            self.client.upload_file(
                local_path, self.bucket, key, ExtraArgs={"ContentType": content_type}
            )
            return {"url": self._url_for(key)}
        except (BotoCoreError, ClientError, OSError) as exc:
            logger.warning("Media upload failed for %s: %s", key, exc)
            return None
        finally:
            discard_local(local_path)

    def remove(self, url: str | None) -> bool:
        if not url:
            return False
        key = f"media/{url.rsplit('/', 1)[-1]}"
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Media removal failed for %s: %s", key, exc)
            return False


def discard_local(local_path: str | None) -> None:
    if local_path and os.path.exists(local_path):
        try:
            os.remove(local_path)
        except OSError:
            logger.warning("Could not remove temporary upload %s", local_path)


def save_upload(file: FileStorage | None, tmp_dir: str) -> str | None:
    """Stash an incoming file under a unique safe name; None if there is no file."""
    if file is None or not file.filename:
        return None
    os.makedirs(tmp_dir, exist_ok=True)
    name = secure_filename(file.filename) or "upload"
    path = os.path.join(tmp_dir, f"{uuid.uuid4().hex}-{name}")
    file.save(path)
    return path
