"""
Accounting Notes Backend — File Storage Service
=================================================

What:  Stores uploaded note images, removes them on note deletion.
How:   Validates counts and sizes for the whole upload batch, writes each
       file with a generated name into STORAGE_ROOT, and hands back the
       public storage path ("/uploads/<name>") recorded on the note.
Who:   Called by NoteService during note creation and deletion.

Naming Scheme:
    image-<epoch millis>-<random 0..1e9><original extension>
    e.g. image-1718000000000-482913377.jpg

    The timestamp plus random component is the only uniqueness mechanism;
    concurrent requests never coordinate. Any extension is accepted and
    kept as uploaded.

Directory Structure:
    uploads/
    ├── image-1718000000000-482913377.jpg
    └── image-1718000000412-90211458.png

The directory is mounted read-only at /uploads by the app factory.
"""

import logging
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, Sequence

import aiofiles
import aiofiles.os

from app.config import settings
from app.exceptions import FileStorageError, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
FILENAME_PREFIX = "image"


class FileService:
    """
    Manages the upload directory.

    Lifecycle of an uploaded file:
        1. Route reads every multipart part into memory
        2. validate_uploads() checks count and per-file size for the batch
        3. store() writes each file under a generated name
        4. The returned "/uploads/<name>" path is saved on the note
        5. remove() deletes it again when the note is deleted
    """

    def __init__(
        self,
        storage_root: Optional[str] = None,
        max_file_size: Optional[int] = None,
        max_files: Optional[int] = None,
    ):
        """
        Args:
            storage_root: Override the upload directory (tests, app factory).
            max_file_size: Override the per-file byte cap.
            max_files: Override the per-request file count cap.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.max_file_size = max_file_size or settings.max_file_size
        self.max_files = max_files or settings.max_files_per_request

    def ensure_storage_root(self) -> Path:
        self.storage_root.mkdir(parents=True, exist_ok=True)
        return self.storage_root

    # ── Naming ────────────────────────────────────────────────────────────

    @staticmethod
    def generate_filename(original_name: Optional[str]) -> str:
        """Build a collision-resistant name that keeps the original extension."""
        extension = PurePosixPath(original_name or "").suffix
        unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{FILENAME_PREFIX}-{unique_suffix}{extension}"

    @staticmethod
    def public_path(filename: str) -> str:
        return f"{PUBLIC_PREFIX}/{filename}"

    def resolve(self, storage_path: str) -> Path:
        """
        Map a storage path ("/uploads/<name>" or a bare name) to its file.

        Only the final path component is used, so a stored reference can
        never point outside the storage root.
        """
        filename = PurePosixPath(storage_path).name
        if not filename or filename in {".", ".."}:
            raise ValidationError(message="Invalid file path", context={"path": storage_path})
        return self.storage_root / filename

    # ── Validation ────────────────────────────────────────────────────────

    def validate_size(self, size: int, filename: Optional[str] = None) -> None:
        if size > self.max_file_size:
            raise PayloadTooLargeError(
                max_size=self.max_file_size,
                actual_size=size,
                filename=filename,
            )

    def validate_uploads(self, uploads: Sequence[tuple]) -> None:
        """
        Check an upload batch of (filename, content) pairs before anything is written.

        Raises:
            ValidationError: no files, or more than max_files
            PayloadTooLargeError: any single file above max_file_size
        """
        if not uploads:
            raise ValidationError(message="No images uploaded", field="images")

        if len(uploads) > self.max_files:
            raise ValidationError(
                message=f"Too many images. A note can have at most {self.max_files} images.",
                field="images",
                context={"max_files": self.max_files, "received": len(uploads)},
            )

        for filename, content in uploads:
            self.validate_size(len(content), filename)

    # ── Storage ───────────────────────────────────────────────────────────

    async def store(self, content: bytes, original_name: Optional[str]) -> str:
        """
        Write one file and return its public storage path.

        Raises:
            FileStorageError if the directory or the file cannot be written.
        """
        filename = self.generate_filename(original_name)
        absolute_path = self.storage_root / filename

        try:
            self.ensure_storage_root()
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return self.public_path(filename)

    async def store_all(self, uploads: Iterable[tuple]) -> list:
        """Store (filename, content) pairs in order; returns their storage paths."""
        stored = []
        try:
            for original_name, content in uploads:
                stored.append(await self.store(content, original_name))
        except FileStorageError:
            await self.discard(stored)
            raise
        return stored

    async def remove(self, storage_path: str) -> None:
        """
        Delete a stored file. Removing a file that is already gone is a no-op.

        Raises:
            FileStorageError for any OS error other than a missing file.
        """
        path = self.resolve(storage_path)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug("File already gone: %s", path.name)
            return
        except OSError as e:
            logger.error("Failed to delete file %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to delete image file.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Deleted file: %s", path.name)

    async def discard(self, storage_paths: Iterable[str]) -> None:
        """
        Best-effort removal after a failed create; errors are logged, not raised.
        """
        for storage_path in storage_paths:
            try:
                await self.remove(storage_path)
            except (FileStorageError, ValidationError) as e:
                logger.warning("Failed to clean up file %s: %s", storage_path, e.message)

