"""
lecturenotes.storage - S3 object storage for audio and rendered notes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from lecturenotes.exceptions import UploadError
from lecturenotes.logging import get_logger
from lecturenotes.models import StoredObject

log = get_logger("storage")


class S3Storage:
    """Thin wrapper over a boto3 S3 client bound to one bucket."""

    def __init__(self, bucket: str | None, region: str, client: Any = None) -> None:
        if not bucket:
            raise UploadError("No S3 bucket configured (set AWS_S3_BUCKET)")
        self.bucket = bucket
        self.region = region
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self.client = client

    def object_uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_file(self, path: Path, key: str, content_type: str) -> StoredObject:
        """Upload a local file with boto3's managed (multipart) transfer.

        Args:
            path: File to upload
            key: Destination object key
            content_type: MIME type stored with the object

        Returns:
            StoredObject with s3:// URI and https URL

        Raises:
            UploadError: If the file is missing or the put fails
        """
        if not path.exists():
            raise UploadError(f"Cannot upload missing file: {path}")

        try:
            self.client.upload_file(
                str(path),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except Exception as e:
            raise UploadError(f"Upload of {key} to {self.bucket} failed: {e}") from e

        log.info("Uploaded %s to s3://%s/%s", path.name, self.bucket, key)
        return StoredObject(
            bucket=self.bucket,
            key=key,
            uri=self.object_uri(key),
            url=self.object_url(key),
        )


def notes_key(name: str) -> str:
    return f"notes/{name}.pdf"


def audio_key(name: str) -> str:
    return f"audio/{name}.wav"
