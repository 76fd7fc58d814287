"""
File upload utilities for handling image validation and storage.
Provides common file operations and validation functions.
"""

import io
import uuid
from pathlib import Path
from typing import NamedTuple, Optional
from PIL import Image, UnidentifiedImageError
import aiofiles
from fastapi import UploadFile

from app.config import settings
from app.utils.exceptions import (
    FileSizeExceededError,
    FileUploadError,
    UnsupportedFileTypeError,
    ValidationError,
)


class ValidatedImage(NamedTuple):
    content: bytes
    width: int
    height: int
    mime_type: str
    file_size: int
    extension: str


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their MIME types
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def allowed_types(cls):
        return [mime for mime in cls.SUPPORTED_FORMATS if mime in settings.allowed_file_types]

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Returns:
            Lowercase file extension

        Raises:
            UnsupportedFileTypeError: If extension is not supported
        """
        if not filename:
            raise FileUploadError("Filename is required")

        extension = Path(filename).suffix.lower()
        supported_extensions = [
            ext for mime in cls.allowed_types() for ext in cls.SUPPORTED_FORMATS[mime]
        ]
        if extension not in supported_extensions:
            raise UnsupportedFileTypeError(extension or "none", supported_extensions)

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str) -> str:
        if mime_type not in cls.allowed_types():
            raise UnsupportedFileTypeError(mime_type or "unknown", cls.allowed_types())
        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        if file_size <= 0:
            raise FileUploadError("File is empty")

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            raise FileSizeExceededError(file_size, max_allowed)

        return file_size

    @classmethod
    def validate_image_dimensions(cls, width: int, height: int) -> None:
        """
        Raises:
            ValidationError: If dimensions fall outside the configured bounds
        """
        min_w, min_h = settings.min_image_width, settings.min_image_height
        if width < min_w or height < min_h:
            raise ValidationError(
                f"Image dimensions ({width}x{height}px) are below minimum ({min_w}x{min_h}px)",
                field_errors=[{"field": "file", "message": "Image is too small", "type": "image_too_small"}]
            )
        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise ValidationError(
                f"Image dimensions ({width}x{height}px) exceed maximum "
                f"({cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px)",
                field_errors=[{"field": "file", "message": "Image is too large", "type": "image_too_large"}]
            )

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> ValidatedImage:
        """
        Comprehensive validation of an uploaded image.

        Checks extension, declared type, size, and that Pillow can read the
        content in the declared format.
        """
        extension = cls.validate_file_extension(file.filename or "")
        mime_type = cls.validate_mime_type(file.content_type or "")

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise UnsupportedFileTypeError(f"{extension} as {mime_type}", cls.SUPPORTED_FORMATS[mime_type])

        await file.seek(0)
        content = await file.read()
        file_size = cls.validate_file_size(len(content))

        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                pil_format = (img.format or "").lower()
                width, height = img.size
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise UnsupportedFileTypeError(f"unreadable image ({e})", cls.allowed_types())

        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise UnsupportedFileTypeError(f"{pil_format} declared as {mime_type}", cls.allowed_types())

        cls.validate_image_dimensions(width, height)
        return ValidatedImage(content, width, height, mime_type, file_size, extension)


class FileStorage:
    """
    Local media storage. Files live under ``<media_dir>/<scope>/<owner id>/``
    and are served from ``settings.media_url``.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or settings.media_dir)

    def generate_file_path(self, scope: str, owner_id: uuid.UUID, extension: str) -> Path:
        return self.base_dir / scope / str(owner_id) / f"{uuid.uuid4()}{extension}"

    def get_relative_path(self, full_path: Path) -> str:
        try:
            return full_path.relative_to(self.base_dir).as_posix()
        except ValueError:
            return full_path.as_posix()

    def public_url(self, relative_path: str) -> str:
        return f"{settings.media_url.rstrip('/')}/{relative_path}"

    async def save_bytes(self, content: bytes, file_path: Path) -> int:
        """
        Write bytes to disk.

        Raises:
            FileUploadError: If the write fails; partial files are removed
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, 'wb') as f:
                await f.write(content)
            return len(content)
        except OSError as e:
            self.delete_file(file_path)
            raise FileUploadError(f"Failed to save file: {e}")

    def delete_file(self, file_path: Path) -> bool:
        try:
            if file_path.exists():
                file_path.unlink()
                return True
            return False
        except OSError:
            return False

    def delete_relative(self, relative_path: Optional[str]) -> bool:
        if not relative_path:
            return False
        return self.delete_file(self.base_dir / relative_path)
