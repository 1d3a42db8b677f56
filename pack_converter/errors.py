"""Error taxonomy for pack conversion.

Every failure that aborts a conversion is a :class:`ConversionError`. The
``kind`` attribute is a stable string that callers (and the JSON report) can
switch on without parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ManifestErrorKind(str, Enum):
    MALFORMED = "malformed"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    BAD_VERSION_STRING = "bad_version_string"


class ManifestError(Exception):
    """Raised by the manifest codec when a document cannot be used."""

    def __init__(self, kind: ManifestErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ConversionError(Exception):
    kind = "conversion_failure"


class MissingManifestError(ConversionError):
    kind = "missing_manifest"


class InvalidManifestError(ConversionError):
    kind = "invalid_manifest"

    def __init__(self, message: str, cause: Optional[ManifestError] = None) -> None:
        super().__init__(message)
        self.cause = cause

    @property
    def reason(self) -> Optional[ManifestErrorKind]:
        return self.cause.kind if self.cause is not None else None


class BadVersionStringError(ConversionError):
    kind = "bad_version_string"


class ArchiveReadError(ConversionError):
    kind = "archive_read_failure"


class ArchiveWriteError(ConversionError):
    kind = "archive_write_failure"
