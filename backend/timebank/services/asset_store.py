"""
TimeBank Backend — Asset Store
===============================

What:  Stores, resolves and deletes uploaded files (profile pictures and
       learning resources).
How:   One flat directory under STORAGE_ROOT. Each file is named
       `<epoch-millis><original-extension>`, e.g. `1718031212345.pdf`.
Who:   IdentityService (profile pictures), ResourceCatalog (resources),
       the /uploads route (downloads).

Rules:
    - A file is created exclusively; if the millisecond token is already
      taken the token is bumped until a free name is found, so an existing
      asset is never overwritten.
    - A failed write leaves nothing behind and raises StorageFailureError;
      callers must not record a filename whose store() call failed.
    - delete() of a missing file is not an error.
    - The asset has no pointer to the row that uses it. Rows reference
      assets by filename (see asset_links).

Directory Structure:
    uploads/
    ├── 1718031212345.jpg
    ├── 1718031299801.pdf
    └── 1718031300112
"""

import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, NamedTuple, Optional

import aiofiles

from timebank.config import settings
from timebank.exceptions import StorageFailureError, ValidationError

logger = logging.getLogger(__name__)

# Profile pictures are restricted to browser-displayable image formats.
# Learning resources accept any extension.
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})

# Extensions that are kept in generated names; anything else is dropped.
_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")

# How many consecutive tokens are tried before giving up on a name.
_MAX_NAME_ATTEMPTS = 1000


class UploadedFile(NamedTuple):
    """An upload as received from the client: original name and raw bytes."""

    filename: str
    content: bytes


@dataclass(frozen=True)
class AssetRef:
    """Handle to a stored asset."""

    filename: str
    size: int


def public_url(filename: Optional[str]) -> Optional[str]:
    """URL path the asset is served under, or None when there is no asset."""
    if not filename:
        return None
    return f"{settings.public_uploads_path}/{filename}"


class AssetStore:
    """
    Manages the storage directory for uploaded files.

    Lifecycle of an uploaded file:
        1. Route reads the multipart part → UploadedFile
        2. store(): emptiness, size and extension checks
        3. Bytes are written under a fresh generated name
        4. The owning service records AssetRef.filename on its row
        5. After the row stops referencing it, delete() removes the file
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("AssetStore initialized with storage_root=%s", self.storage_root)

    # ── Naming ────────────────────────────────────────────────────────────

    @staticmethod
    def extension_of(original_name: str) -> str:
        """Lower-cased extension of the client's filename, or '' if unusable."""
        ext = Path(original_name or "").suffix.lower()
        return ext if _SAFE_EXTENSION.match(ext) else ""

    @staticmethod
    def _time_token() -> int:
        return int(time.time() * 1000)

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_extension(
        self, original_name: str, allowed_extensions: Optional[Collection[str]]
    ) -> str:
        ext = self.extension_of(original_name)
        if allowed_extensions is not None and ext not in allowed_extensions:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'unknown'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed_extensions))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed_extensions)},
            )
        return ext

    def _validate_size(self, content: bytes, max_size: Optional[int]) -> None:
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="file")
        if max_size is not None and len(content) > max_size:
            max_mb = max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File is too large. Maximum size is {max_mb:.0f}MB.",
                field="file",
                context={"max_size": max_size, "actual_size": len(content)},
            )

    # ── Path Resolution ───────────────────────────────────────────────────

    def path_for(self, filename: str) -> Path:
        """
        Absolute path of an asset inside the storage root.

        Only bare filenames are accepted; anything containing a directory
        component (`../x`, `a/b`) raises ValidationError.
        """
        if not filename or filename in {".", ".."} or Path(filename).name != filename:
            raise ValidationError(message="Invalid asset reference", field="filename")
        path = (self.storage_root / filename).resolve()
        if path.parent != self.storage_root:
            raise ValidationError(message="Invalid asset reference", field="filename")
        return path

    def exists(self, filename: str) -> bool:
        try:
            return self.path_for(filename).is_file()
        except ValidationError:
            return False

    # ── Store ─────────────────────────────────────────────────────────────

    async def store(
        self,
        upload: UploadedFile,
        allowed_extensions: Optional[Collection[str]] = None,
        max_size: Optional[int] = None,
    ) -> AssetRef:
        """
        Validate and persist an uploaded file under a generated name.

        Returns:
            AssetRef for the new file.

        Raises:
            ValidationError: empty file, too large, extension not allowed.
            StorageFailureError: the bytes could not be written.
        """
        ext = self._validate_extension(upload.filename, allowed_extensions)
        self._validate_size(upload.content, max_size)

        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Storage root %s unavailable: %s", self.storage_root, e)
            raise StorageFailureError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(self.storage_root), "os_error": str(e)},
            )

        token = self._time_token()
        for _ in range(_MAX_NAME_ATTEMPTS):
            filename = f"{token}{ext}"
            path = self.storage_root / filename
            try:
                # "xb": exclusive create, fails if the name is taken
                async with aiofiles.open(path, "xb") as f:
                    await f.write(upload.content)
            except FileExistsError:
                token += 1
                continue
            except OSError as e:
                logger.error("Failed to store asset %s: %s", filename, e)
                self._remove_partial(path)
                raise StorageFailureError(
                    message="Failed to save uploaded file. Please try again.",
                    context={"path": str(path), "os_error": str(e)},
                )

            logger.info("Asset stored: %s (%d bytes)", filename, len(upload.content))
            return AssetRef(filename=filename, size=len(upload.content))

        raise StorageFailureError(
            message="Failed to save uploaded file. Please try again.",
            context={"reason": "no free filename", "last_token": token},
        )

    def _remove_partial(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial asset %s: %s", path.name, e)

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, filename: str) -> bool:
        """
        Remove an asset.

        Returns:
            True if a file was removed, False if it was already gone.

        Raises:
            StorageFailureError: the file exists but could not be removed.
        """
        path = self.path_for(filename)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Asset already gone: %s", filename)
            return False
        except OSError as e:
            logger.error("Failed to delete asset %s: %s", filename, e)
            raise StorageFailureError(
                message="Failed to delete stored file.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Asset deleted: %s", filename)
        return True

    async def discard(self, filename: str) -> None:
        """
        Best-effort removal of an asset that was never committed to a row.

        Used when the database write that should have referenced it failed.
        """
        try:
            await self.delete(filename)
        except StorageFailureError as e:
            logger.warning("Could not discard orphaned asset %s: %s", filename, e.context)

    def check_writable(self) -> bool:
        """True when the storage root exists and is writable (health check)."""
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)


# ── Singleton Instance ────────────────────────────────────────────────────
asset_store = AssetStore()
