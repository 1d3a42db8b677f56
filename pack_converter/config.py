from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

from .errors import BadVersionStringError, ManifestError

DEFAULT_NAMESPACE = "minecraft"
DEFAULT_JAVA_PACK_FORMAT = 18
DEFAULT_MIN_ENGINE_VERSION = "1.20.0"
DEFAULT_COMPRESSION_LEVEL = 9
DEFAULT_CREDIT = "Pack Converter"
DEFAULT_PACK_NAME = "Converted Pack"
DEFAULT_OUTPUT_DIR = Path("converted_packs")

# Chunk size used when streaming entry payloads between archives and staging files.
COPY_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ConversionSettings:
    namespace: str = DEFAULT_NAMESPACE
    java_pack_format: int = DEFAULT_JAVA_PACK_FORMAT
    min_engine_version: str = DEFAULT_MIN_ENGINE_VERSION
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    credit: str = DEFAULT_CREDIT
    overwrite: bool = False

    def check(self) -> None:
        """Reject settings that would only fail once an archive is already open.

        A bad engine version is a :class:`BadVersionStringError`; the other
        fields are caller mistakes and raise :class:`ValueError`.
        """
        from .manifest import parse_engine_version

        if not self.namespace or "/" in self.namespace or "\\" in self.namespace:
            raise ValueError(f"invalid namespace: {self.namespace!r}")
        if not 0 <= self.compression_level <= 9:
            raise ValueError(
                f"compression level must be between 0 and 9, got {self.compression_level}"
            )
        try:
            parse_engine_version(self.min_engine_version)
        except ManifestError as exc:
            raise BadVersionStringError(str(exc)) from exc


def settings_from_args(args: argparse.Namespace) -> ConversionSettings:
    return ConversionSettings(
        namespace=getattr(args, "namespace", DEFAULT_NAMESPACE),
        java_pack_format=getattr(args, "pack_format", DEFAULT_JAVA_PACK_FORMAT),
        min_engine_version=getattr(args, "min_engine_version", DEFAULT_MIN_ENGINE_VERSION),
        compression_level=getattr(args, "compression_level", DEFAULT_COMPRESSION_LEVEL),
        credit=getattr(args, "credit", DEFAULT_CREDIT),
        overwrite=getattr(args, "force", False),
    )
