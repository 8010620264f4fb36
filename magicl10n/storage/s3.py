"""
Object storage on S3.

Blobs are stored byte-exact (no charset transcoding); paths are plain keys
built by the pipeline.
"""

import io
import zipfile
from typing import Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from magicl10n.exceptions import NotFoundError, UpstreamError
from magicl10n.logger import get_logger

logger = get_logger(__name__)

STAGE = "storage"


class ObjectStorage:
    """Thin wrapper over an S3 client bound to one bucket."""

    def __init__(self, s3_client, bucket: str):
        if not bucket:
            raise UpstreamError("No storage bucket configured", stage=STAGE, code="storage_config_missing")
        self.s3 = s3_client
        self.bucket = bucket

    def uri(self, path: str) -> str:
        """The s3:// URI of a key (or key prefix)."""
        return f"s3://{self.bucket}/{path}"

    def key_from_uri(self, uri: str) -> str:
        prefix = f"s3://{self.bucket}/"
        return uri[len(prefix):] if uri.startswith(prefix) else uri

    def put_blob(self, path: str, content: bytes, content_type: Optional[str] = None):
        """Upload bytes to `path`."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        params = {"Bucket": self.bucket, "Key": path, "Body": content}
        if content_type:
            params["ContentType"] = content_type

        try:
            self.s3.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {path}: {e}")
            raise UpstreamError(f"Could not store '{path}': {e}", stage=STAGE)
        logger.debug(f"Stored {len(content)} bytes at {self.uri(path)}")

    def get_blob(self, path: str) -> bytes:
        """Download the bytes stored at `path`."""
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError(f"No stored object at '{path}'", details={"path": path})
            logger.error(f"Failed to download {path}: {e}")
            raise UpstreamError(f"Could not read '{path}': {e}", stage=STAGE)
        except BotoCoreError as e:
            logger.error(f"Failed to download {path}: {e}")
            raise UpstreamError(f"Could not read '{path}': {e}", stage=STAGE)

    def list_keys(self, prefix: str) -> List[str]:
        """List every key under `prefix`."""
        keys = []
        params = {"Bucket": self.bucket, "Prefix": prefix}
        try:
            while True:
                response = self.s3.list_objects_v2(**params)
                keys.extend(item["Key"] for item in response.get("Contents", []))
                if not response.get("IsTruncated"):
                    break
                params["ContinuationToken"] = response["NextContinuationToken"]
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list {prefix}: {e}")
            raise UpstreamError(f"Could not list '{prefix}': {e}", stage=STAGE)
        return keys

    def find_blob(self, prefix: str, suffix: str) -> str:
        """
        Find the key under `prefix` whose name ends with `suffix`.

        The translation service writes its output below a provider-generated
        folder, so the exact key is not known in advance.

        Raises:
            NotFoundError: If no key matches
        """
        for key in self.list_keys(prefix):
            if key == prefix + suffix or key.endswith("/" + suffix):
                return key
        raise NotFoundError(
            f"No object ending with '{suffix}' under '{prefix}'",
            details={"prefix": prefix, "suffix": suffix},
        )

    def download_url(self, path: str, expires_in: int) -> str:
        """Presigned GET URL for `path`."""
        try:
            return self.s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise UpstreamError(f"Could not create download URL for '{path}': {e}", stage=STAGE)

    def create_zip(self, directory: str, files: List[str], zip_path: str) -> str:
        """
        Bundle stored files into a ZIP archive.

        Args:
            directory: Key prefix the files live under
            files: Paths relative to `directory`; kept as the archive names
            zip_path: Key of the archive to write

        Returns:
            The archive key
        """
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name in files:
                archive.writestr(name, self.get_blob(f"{directory}/{name}"))

        self.put_blob(zip_path, buffer.getvalue(), content_type="application/zip")
        logger.info(f"Bundled {len(files)} files into {self.uri(zip_path)}")
        return zip_path

    def save_files(self, directory: str, files: Dict[str, bytes], content_type: Optional[str] = None) -> List[str]:
        """Upload several files under one directory; returns their relative names."""
        for name, content in files.items():
            self.put_blob(f"{directory}/{name}", content, content_type=content_type)
        return list(files)
