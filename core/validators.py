"""
Core Validators - upload checks shared by the document endpoints.

Usage:
    from core.validators import validate_file_upload, FileValidator

    validate_file_upload(request.FILES['file'])

    class UploadSerializer(serializers.Serializer):
        file = serializers.FileField(validators=[FileValidator()])
"""

import logging
import os
import re
from typing import Optional, Set

from django.conf import settings
from rest_framework import serializers

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# FILE UPLOAD VALIDATION
# =============================================================================

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

DEFAULT_ALLOWED_EXTENSIONS = {
    'jpeg', 'jpg', 'png', 'gif', 'pdf', 'doc', 'docx',
    'xls', 'xlsx', 'ppt', 'pptx', 'txt',
}


def max_upload_bytes() -> int:
    return getattr(settings, 'WORKFORCE_UPLOAD_MAX_BYTES', DEFAULT_MAX_UPLOAD_BYTES)


def allowed_extensions() -> Set[str]:
    return set(getattr(settings, 'WORKFORCE_UPLOAD_EXTENSIONS', DEFAULT_ALLOWED_EXTENSIONS))


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or '')[1].lower().lstrip('.')


def validate_file_upload(
    file,
    max_size: Optional[int] = None,
    extensions: Optional[Set[str]] = None,
    field: str = 'file',
) -> None:
    """
    Validate an uploaded file against the size limit and extension whitelist.

    Raises:
        ValidationError: If the file is missing, too large, or of a
            disallowed type.
    """
    if not file:
        raise ValidationError("Please upload a file.", field=field)

    if max_size is None:
        max_size = max_upload_bytes()
    if extensions is None:
        extensions = allowed_extensions()

    size = getattr(file, 'size', None)
    if size is None:
        size = len(file.read())
        file.seek(0)

    if size > max_size:
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(f"File size exceeds maximum of {max_mb:.0f}MB.", field=field)

    ext = file_extension(getattr(file, 'name', ''))
    if ext not in extensions:
        logger.info("Rejected upload with extension %r", ext)
        raise ValidationError(
            f"File type '{ext or 'unknown'}' is not allowed. "
            f"Allowed: {', '.join(sorted(extensions))}.",
            field=field,
        )


class FileValidator:
    """DRF field validator wrapping ``validate_file_upload``."""

    def __init__(self, max_size: Optional[int] = None, extensions: Optional[Set[str]] = None):
        self.max_size = max_size
        self.extensions = extensions

    def __call__(self, file) -> None:
        try:
            validate_file_upload(file, max_size=self.max_size, extensions=self.extensions)
        except ValidationError as exc:
            raise serializers.ValidationError(exc.message)

    def __eq__(self, other):
        return (
            isinstance(other, FileValidator) and
            self.max_size == other.max_size and
            self.extensions == other.extensions
        )


# =============================================================================
# COMMON PATTERN VALIDATORS
# =============================================================================

PHONE_PATTERN = re.compile(r'^[\d\s\-\+\(\)\.]{7,20}$')


class PhoneValidator:
    """Loose international phone number check."""

    def __call__(self, value: str) -> None:
        if value and not PHONE_PATTERN.match(value):
            raise serializers.ValidationError("Enter a valid phone number.")
