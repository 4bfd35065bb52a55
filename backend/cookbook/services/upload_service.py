"""
Cookbook Backend — Image Upload Service
=========================================

What:  Validates, stores and removes recipe images on the local filesystem.
How:   Checks the declared MIME type and size, writes the bytes under a
       generated filename with aiofiles, and reports a relative URL
       (/uploads/<generated-name>).
Who:   Used by RecipeService on create, update and delete.
When:  Once per request that carries an `image` form field, and whenever a
       recipe's previous image has to go.

Upload lifecycle (scoped acquisition):
    async with upload_service.acquire(image) as stored:
        ... validate payload, touch the store ...
        if stored:
            stored.commit()

    Leaving the block without commit() (validation failure, unknown id,
    unexpected exception) deletes the file that was written for this request.
    Files written by earlier requests are only removed through
    remove_by_url(), which the caller invokes explicitly.

Directory Structure:
    uploads/
    ├── recipe-1700000000000-123456789.jpg
    └── recipe-1700000000042-987654321.png
"""

import logging
import re
import secrets
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from cookbook.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Extensions are carried over from the client's filename only when they look
# like a plain extension; anything else is dropped.
_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class StoredImage:
    """
    An image written to the uploads directory during the current request.

    Attributes:
        path:      Absolute path of the written file
        url:       Relative URL stored on the recipe (e.g. /uploads/recipe-...png)
        committed: True once the owning operation has succeeded
    """

    def __init__(self, path: Path, url: str):
        self.path = path
        self.url = url
        self.committed = False

    def commit(self) -> None:
        self.committed = True

    def __repr__(self) -> str:
        return f"<StoredImage(url='{self.url}', committed={self.committed})>"


class UploadService:
    """
    Manages the upload → keep-or-discard lifecycle of recipe images.

    Lifecycle of an uploaded image:
        1. Route receives multipart `image` → UploadService.acquire()
        2. MIME check (declared content type must start with image/)
        3. Size check (max_size bytes, 5MB by default)
        4. File is written as recipe-<epoch-ms>-<random><ext>
        5. Caller commits on success; otherwise the file is deleted
    """

    def __init__(
        self,
        uploads_dir: str,
        url_prefix: str = "/uploads",
        max_size: int = 5 * 1024 * 1024,
    ):
        self.uploads_dir = Path(uploads_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size = max_size
        logger.info("UploadService initialized with uploads_dir=%s", self.uploads_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_content_type(self, content_type: Optional[str]) -> str:
        """
        Accept any declared image/* type.

        Raises:  ValidationError if the content type is missing or not an image.
        """
        mime_type = (content_type or "").lower()
        if not mime_type.startswith("image/"):
            raise ValidationError(
                message="Only image files are allowed",
                field="image",
                context={"content_type": content_type},
            )
        return mime_type

    def validate_size(self, actual_size: int) -> None:
        """
        Reject images larger than max_size bytes.

        Raises:  ValidationError with a human-readable size limit message.
        """
        if actual_size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"Image size ({actual_size / (1024 * 1024):.1f}MB) exceeds "
                    f"maximum of {max_mb:.0f}MB."
                ),
                field="image",
                context={"max_size_bytes": self.max_size, "actual_size": actual_size},
            )

    # ── Naming ────────────────────────────────────────────────────────────

    def generate_filename(self, original_filename: str) -> str:
        """
        Build recipe-<epoch-ms>-<random 0..999999999><ext>.

        The client filename contributes its extension only; the rest is
        generated, so no user input reaches the path beyond a vetted suffix.
        """
        suffix = Path(original_filename).suffix
        if not _EXTENSION_RE.match(suffix):
            suffix = ""
        timestamp_ms = int(time.time() * 1000)
        return f"recipe-{timestamp_ms}-{secrets.randbelow(1_000_000_000)}{suffix}"

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def resolve_url(self, url: Optional[str]) -> Optional[Path]:
        """
        Map a stored image URL back to its file in the uploads directory.

        Returns None for empty URLs, URLs outside the uploads prefix, and
        anything resolving outside the uploads directory (e.g. ../ segments).
        """
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        name = url[len(self.url_prefix) + 1:]
        if not name:
            return None
        candidate = (self.uploads_dir / name).resolve()
        if candidate.parent != self.uploads_dir:
            return None
        return candidate

    # ── Filesystem ────────────────────────────────────────────────────────

    async def store_image(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
    ) -> StoredImage:
        """
        Validate and write an image, returning the uncommitted StoredImage.

        Raises:
            ValidationError: wrong MIME type or too large (nothing is written)
            FileStorageError: the directory or file could not be written
        """
        self.validate_content_type(content_type)
        self.validate_size(len(content))

        name = self.generate_filename(filename)
        path = self.uploads_dir / name

        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", name, len(content))
        return StoredImage(path=path, url=self.url_for(name))

    async def cleanup_file(self, path: Path) -> None:
        """
        Best-effort removal of a file written during the current request.

        Missing files are ignored; other OS errors are logged, not raised, so
        the original failure still reaches the client.
        """
        try:
            await aiofiles.os.remove(path)
            logger.info("Cleaned up uploaded image: %s", path.name)
        except FileNotFoundError:
            logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", path, str(e))

    async def remove_by_url(self, url: Optional[str]) -> bool:
        """
        Delete a previously stored image referenced by its URL.

        Returns True if a file was removed. URLs that do not point into the
        uploads directory and files that no longer exist are skipped.

        Raises:
            FileStorageError: the file exists but could not be deleted
        """
        path = self.resolve_url(url)
        if path is None:
            if url:
                logger.debug("Not an uploads URL, leaving it alone: %s", url)
            return False

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete image %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to delete recipe image",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Removed image: %s", path.name)
        return True

    # ── Scoped acquisition ────────────────────────────────────────────────

    @asynccontextmanager
    async def acquire(self, upload: Optional[UploadFile]) -> AsyncIterator[Optional[StoredImage]]:
        """
        Store the request's image (if any) for the duration of the block.

        Yields None when no file was sent (missing field or an empty file
        input with no filename). The stored file is deleted on exit unless
        the caller committed it, whichever way the block exits.
        """
        if upload is None or not upload.filename:
            yield None
            return

        try:
            content = await upload.read()
        finally:
            await upload.close()

        stored = await self.store_image(upload.filename, content, upload.content_type)
        try:
            yield stored
        finally:
            if not stored.committed:
                await self.cleanup_file(stored.path)
