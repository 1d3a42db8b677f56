"""
validate.py
===========

Structural validation of a converted package. Checks PNG members with Pillow,
JSON members for parseability and expected keys, and that the package carries
a manifest for one of the two layouts.

Usage:
    pack-converter validate converted_my_pack.mcpack --report validation.json
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .archive import ArchiveSource, PackageReader
from .errors import ManifestError
from .manifest import parse_source_manifest, parse_target_manifest
from .paths import BEDROCK_MANIFEST, JAVA_MANIFEST

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Expected JSON top-level keys per generated file
# ---------------------------------------------------------------------------

EXPECTED_JSON_KEYS: Dict[str, List[str]] = {
    "terrain_texture.json": ["resource_pack_name", "texture_name", "padding", "num_mip_levels", "textures"],
    "item_texture.json": ["resource_pack_name", "texture_name", "padding", "num_mip_levels", "textures"],
    "manifest.json": ["format_version", "header", "modules"],
}


def validate_png(payload: bytes) -> Tuple[bool, str]:
    """Open with Pillow, require non-zero dimensions and a clean verify()."""
    try:
        with Image.open(io.BytesIO(payload)) as img:
            w, h = img.size
            if w <= 0 or h <= 0:
                return False, f"zero dimensions ({w}x{h})"
            img.verify()
        return True, "ok"
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        return False, f"invalid PNG: {exc}"


def validate_json(name: str, payload: bytes) -> Tuple[bool, str]:
    try:
        document = json.loads(payload.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        return False, f"invalid JSON: {exc}"

    if not isinstance(document, (dict, list)):
        return False, f"unexpected root type: {type(document).__name__}"

    expected = EXPECTED_JSON_KEYS.get(name)
    if expected and isinstance(document, dict):
        for key in expected:
            if key not in document:
                return False, f"missing expected key: {key}"
    return True, "ok"


def validate_manifest(name: str, payload: bytes) -> Tuple[bool, str]:
    parser = parse_target_manifest if name == BEDROCK_MANIFEST else parse_source_manifest
    try:
        parser(payload)
    except ManifestError as exc:
        return False, f"{exc.kind.value}: {exc}"
    return True, "ok"


@dataclass
class ValidationStats:
    total: int = 0
    passed: int = 0
    failed: int = 0
    manifest: Optional[str] = None
    by_type: Dict[str, Dict[str, int]] = field(default_factory=dict)
    failures: List[Dict[str, str]] = field(default_factory=list)

    def add(self, path: str, ftype: str, ok: bool, reason: str) -> None:
        self.total += 1
        counts = self.by_type.setdefault(ftype, {"total": 0, "passed": 0, "failed": 0})
        counts["total"] += 1
        if ok:
            self.passed += 1
            counts["passed"] += 1
            return
        self.failed += 1
        counts["failed"] += 1
        self.failures.append({"path": path, "type": ftype, "reason": reason})
        LOGGER.warning("FAIL: %s (%s)", path, reason)


def validate_package(source: ArchiveSource, report_path: Optional[Path] = None) -> ValidationStats:
    stats = ValidationStats()

    with PackageReader(source) as reader:
        for entry in reader.index():
            if entry.is_dir:
                continue
            name = entry.path.rsplit("/", 1)[-1]
            suffix = Path(name).suffix.lower()

            if entry.path in (BEDROCK_MANIFEST, JAVA_MANIFEST):
                stats.manifest = entry.path
                ok, reason = validate_manifest(entry.path, reader.read(entry))
                stats.add(entry.path, "manifest", ok, reason)
            elif suffix == ".png":
                ok, reason = validate_png(reader.read(entry))
                stats.add(entry.path, "png", ok, reason)
            elif suffix == ".json":
                ok, reason = validate_json(name, reader.read(entry))
                stats.add(entry.path, "json", ok, reason)

    if stats.manifest is None:
        stats.add("<root>", "manifest", False, f"neither {BEDROCK_MANIFEST} nor {JAVA_MANIFEST} found")

    LOGGER.info(
        "Validation: %d total, %d passed, %d failed",
        stats.total, stats.passed, stats.failed,
    )
    for ftype, counts in sorted(stats.by_type.items()):
        LOGGER.info(
            "  %s: %d total, %d passed, %d failed",
            ftype, counts["total"], counts["passed"], counts["failed"],
        )

    if report_path:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report = {
            "total": stats.total,
            "passed": stats.passed,
            "failed": stats.failed,
            "manifest": stats.manifest,
            "by_type": stats.by_type,
            "failures": stats.failures,
        }
        report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        LOGGER.info("Report written to %s", report_path)

    return stats


def is_zip_package(path: Path) -> bool:
    return path.is_file() and zipfile.is_zipfile(path)
