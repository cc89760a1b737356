"""Persistence of generated logo artifacts."""

import asyncio
import io
import os
import time
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from ..config.settings import settings
from ..errors import ArtifactStorageError
from ..utils.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPES = {
    "png": "image/png",
    "webp": "image/webp",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def convert_image(data: bytes, preferred_format: str, original_extension: str) -> Tuple[bytes, str]:
    """Convert image bytes to ``preferred_format``; keep the original bytes if conversion fails."""
    target = preferred_format.lower()
    if original_extension.lower() == target:
        return data, target
    try:
        with Image.open(io.BytesIO(data)) as img:
            buffer = io.BytesIO()
            img.save(buffer, format=target.upper())
            return buffer.getvalue(), target
    except (UnidentifiedImageError, OSError, ValueError, KeyError) as e:
        logger.warning("Image conversion failed, keeping original format", target=target, error=str(e))
        return data, original_extension.lower()


def artifact_filename(extension: str) -> str:
    return f"logo-{int(time.time() * 1000)}.{extension}"


class LocalArtifactStore:
    """Writes logos to a local directory served under ``route``."""

    def __init__(self, directory: Optional[str] = None, route: Optional[str] = None):
        self.directory = Path(directory or settings.artifact_dir)
        self.route = (route or settings.artifact_route).rstrip("/")

    def path_for(self, filename: str) -> Path:
        return self.directory / os.path.basename(filename)

    async def persist(self, data: bytes, preferred_format: str = "png", original_extension: str = "webp") -> str:
        """Store the image and return its locator (``<route>/<filename>``)."""
        payload, extension = convert_image(data, preferred_format, original_extension)
        filename = artifact_filename(extension)
        self.directory.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(self.path_for(filename).write_bytes, payload)
        logger.info("Logo saved", path=str(self.path_for(filename)))
        return f"{self.route}/{filename}"


class SupabaseArtifactStore:
    """Uploads logos to a public Supabase Storage bucket and returns the public URL."""

    def __init__(self, client: Optional[Client] = None, bucket: Optional[str] = None):
        self.bucket = bucket or settings.artifact_bucket
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            if not settings.supabase_enabled:
                raise ValueError(
                    "Supabase URL and Service Key must be set in environment variables:\n"
                    "- SUPABASE_URL\n"
                    "- SUPABASE_SERVICE_KEY"
                )
            options = ClientOptions(
                headers={"X-Client-Info": "brandscape"},
                postgrest_client_timeout=settings.supabase_timeout
            )
            self._client = create_client(settings.supabase_url, settings.supabase_service_key, options=options)
            logger.info("Initialized Supabase client")
        return self._client

    def _ensure_bucket_exists(self) -> None:
        try:
            buckets = self.client.storage.list_buckets()
            names = {getattr(b, "name", None) or (b.get("name") if isinstance(b, dict) else None) for b in buckets}
            if self.bucket not in names:
                logger.info("Creating storage bucket", bucket=self.bucket)
                self.client.storage.create_bucket(self.bucket, options={"public": True})
        except Exception as e:
            # The upload reports the real error if the bucket is missing
            logger.error("Error checking/creating bucket", bucket=self.bucket, error=str(e))

    def public_url(self, path: str) -> str:
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        if not url.startswith("http"):
            url = f"{settings.supabase_url.rstrip('/')}/storage/v1/object/public/{self.bucket}/{path}"
        return url

    def _upload(self, path: str, payload: bytes, content_type: str) -> None:
        self._ensure_bucket_exists()
        self.client.storage.from_(self.bucket).upload(
            path=path,
            file=payload,
            file_options={"content-type": content_type}
        )

    async def persist(self, data: bytes, preferred_format: str = "png", original_extension: str = "webp") -> str:
        """Upload with exponential backoff and return the object's public URL."""
        payload, extension = convert_image(data, preferred_format, original_extension)
        path = artifact_filename(extension)
        content_type = CONTENT_TYPES.get(extension, "application/octet-stream")

        retry_count = 0
        while True:
            try:
                await asyncio.to_thread(self._upload, path, payload, content_type)
                break
            except Exception as e:
                retry_count += 1
                if retry_count > settings.max_retries:
                    logger.error("Logo upload failed", retries=settings.max_retries, error=str(e))
                    raise ArtifactStorageError(f"upload to bucket {self.bucket} failed: {e}") from e
                delay = min(settings.retry_delay * (settings.retry_backoff ** (retry_count - 1)), settings.retry_max_delay)
                logger.warning("Upload failed, retrying", delay=delay, attempt=retry_count, error=str(e))
                await asyncio.sleep(delay)

        try:
            url = await asyncio.to_thread(self.public_url, path)
        except Exception as e:
            raise ArtifactStorageError(f"no public URL for {path}: {e}") from e
        logger.info("Logo uploaded", bucket=self.bucket, url=url)
        return url
