"""Convert resource packs between the Java Edition and Bedrock Edition layouts."""

from .config import ConversionSettings
from .errors import (
    ArchiveReadError,
    ArchiveWriteError,
    BadVersionStringError,
    ConversionError,
    InvalidManifestError,
    ManifestError,
    ManifestErrorKind,
    MissingManifestError,
)
from .pipeline import (
    BEDROCK_TO_JAVA,
    JAVA_TO_BEDROCK,
    ConversionResult,
    ConversionState,
    Direction,
    PackConverter,
    convert_package,
    get_profile,
)

__version__ = "0.1.0"

__all__ = [
    "ArchiveReadError",
    "ArchiveWriteError",
    "BEDROCK_TO_JAVA",
    "BadVersionStringError",
    "ConversionError",
    "ConversionResult",
    "ConversionSettings",
    "ConversionState",
    "Direction",
    "InvalidManifestError",
    "JAVA_TO_BEDROCK",
    "ManifestError",
    "ManifestErrorKind",
    "MissingManifestError",
    "PackConverter",
    "convert_package",
    "get_profile",
]
