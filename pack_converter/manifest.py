"""
manifest.py
===========

Parse and render the two package manifests:
* ``pack.mcmeta`` (Java Edition): ``{"pack": {"pack_format": 18, "description": "..."}}``;
  ``pack.format_version`` is read when ``pack_format`` is absent
* ``pack.mcmeta`` (Java Edition): ``{"pack": {"pack_format": 18, "description": "..."}}``
* ``manifest.json`` (Bedrock Edition): ``format_version`` 2 document with one
  ``header`` and a single ``resources`` module.

Parsing is strict only on the required field of each format. Structural
problems raise :class:`ManifestError` with kind ``MALFORMED``; a well-formed
document missing its required field raises kind ``MISSING_REQUIRED_FIELD``.
"""

from __future__ import annotations

import json
import random
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .config import DEFAULT_JAVA_PACK_FORMAT, DEFAULT_MIN_ENGINE_VERSION
from .errors import ManifestError, ManifestErrorKind
from .identifiers import generate_uuid

BEDROCK_MANIFEST_FORMAT = 2
PACK_VERSION: Tuple[int, int, int] = (1, 0, 0)
RESOURCES_MODULE_TYPE = "resources"

_VERSION_COMPONENT = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class JavaPackMeta:
    pack_format: int
    description: str = ""


@dataclass(frozen=True)
class BedrockManifest:
    name: str
    description: str = ""
    header_uuid: Optional[str] = None
    module_uuid: Optional[str] = None
    min_engine_version: Optional[Tuple[int, int, int]] = None


def _load_object(data: bytes, label: str) -> Dict[str, Any]:
    try:
        text = data.decode("utf-8-sig")
        payload = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestError(ManifestErrorKind.MALFORMED, f"{label} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(
            ManifestErrorKind.MALFORMED,
            f"{label} root must be an object, got {type(payload).__name__}",
        )
    return payload


def _section(payload: Dict[str, Any], key: str, label: str) -> Optional[Dict[str, Any]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ManifestError(
            ManifestErrorKind.MALFORMED,
            f"{label} '{key}' must be an object, got {type(value).__name__}",
        )
    return value


def flatten_text_component(value: Any) -> str:
    """Reduce a JSON text component (string, ``{"text": ...}`` or list) to plain text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "".join(flatten_text_component(part) for part in value)
    if isinstance(value, dict):
        text = flatten_text_component(value.get("text", ""))
        extra = value.get("extra")
        if isinstance(extra, list):
            text += flatten_text_component(extra)
        return text
    return str(value)


def parse_source_manifest(data: bytes) -> JavaPackMeta:
    payload = _load_object(data, "pack.mcmeta")
    pack = _section(payload, "pack", "pack.mcmeta")
    if pack is None:
        raise ManifestError(
            ManifestErrorKind.MISSING_REQUIRED_FIELD,
            "pack.mcmeta has no 'pack' section",
        )

    key = "pack_format"
    pack_format = pack.get(key)
    if pack_format is None:
        key = "format_version"
        pack_format = pack.get(key)
    if pack_format is None:
        raise ManifestError(
            ManifestErrorKind.MISSING_REQUIRED_FIELD,
            "pack.mcmeta is missing pack.pack_format (or pack.format_version)",
        )
    # bool is an int subclass; "true" is not a pack format.
    if isinstance(pack_format, bool) or not isinstance(pack_format, int):
        raise ManifestError(
            ManifestErrorKind.MALFORMED,
            f"pack.{key} must be an integer, got {pack_format!r}",
        )

    return JavaPackMeta(
        pack_format=pack_format,
        description=flatten_text_component(pack.get("description")),
    )


def _optional_version(value: Any) -> Optional[Tuple[int, int, int]]:
    if isinstance(value, list) and len(value) == 3 and all(
        isinstance(part, int) and not isinstance(part, bool) for part in value
    ):
        return (value[0], value[1], value[2])
    return None


def parse_target_manifest(data: bytes) -> BedrockManifest:
    payload = _load_object(data, "manifest.json")
    header = _section(payload, "header", "manifest.json")
    if header is None:
        raise ManifestError(
            ManifestErrorKind.MISSING_REQUIRED_FIELD,
            "manifest.json has no 'header' section",
        )

    name = header.get("name")
    if name is None:
        raise ManifestError(
            ManifestErrorKind.MISSING_REQUIRED_FIELD,
            "manifest.json is missing header.name",
        )
    if not isinstance(name, str):
        raise ManifestError(
            ManifestErrorKind.MALFORMED,
            f"header.name must be a string, got {type(name).__name__}",
        )

    module_uuid = None
    modules = payload.get("modules")
    if isinstance(modules, list) and modules and isinstance(modules[0], dict):
        raw_module_uuid = modules[0].get("uuid")
        if isinstance(raw_module_uuid, str):
            module_uuid = raw_module_uuid

    header_uuid = header.get("uuid")
    return BedrockManifest(
        name=name,
        description=flatten_text_component(header.get("description")),
        header_uuid=header_uuid if isinstance(header_uuid, str) else None,
        module_uuid=module_uuid,
        min_engine_version=_optional_version(header.get("min_engine_version")),
    )


def parse_engine_version(text: str) -> Tuple[int, int, int]:
    """Split ``"1.20.0"`` into ``(1, 20, 0)``; anything but three numbers is rejected."""
    parts = text.strip().split(".")
    if len(parts) != 3 or not all(_VERSION_COMPONENT.match(part) for part in parts):
        raise ManifestError(
            ManifestErrorKind.BAD_VERSION_STRING,
            f"engine version must be MAJOR.MINOR.PATCH, got {text!r}",
        )
    return (int(parts[0]), int(parts[1]), int(parts[2]))


def _dump(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, indent=4, ensure_ascii=False).encode("utf-8")


def render_source_manifest(
    name: str,
    description: str,
    pack_format: int = DEFAULT_JAVA_PACK_FORMAT,
) -> bytes:
    # pack.mcmeta has no name field; the caller folds the name into the description.
    del name
    return _dump({"pack": {"pack_format": pack_format, "description": description}})


def build_target_manifest(
    name: str,
    description: str,
    min_engine_version: str = DEFAULT_MIN_ENGINE_VERSION,
    rng: Optional[random.Random] = None,
) -> BedrockManifest:
    engine_version = parse_engine_version(min_engine_version)
    return BedrockManifest(
        name=name,
        description=description,
        header_uuid=generate_uuid(rng),
        module_uuid=generate_uuid(rng),
        min_engine_version=engine_version,
    )


def bedrock_manifest_document(manifest: BedrockManifest) -> Dict[str, Any]:
    engine_version = manifest.min_engine_version or parse_engine_version(DEFAULT_MIN_ENGINE_VERSION)
    return {
        "format_version": BEDROCK_MANIFEST_FORMAT,
        "header": {
            "name": manifest.name,
            "description": manifest.description,
            "uuid": manifest.header_uuid or generate_uuid(),
            "version": list(PACK_VERSION),
            "min_engine_version": list(engine_version),
        },
        "modules": [
            {
                "description": manifest.description,
                "type": RESOURCES_MODULE_TYPE,
                "uuid": manifest.module_uuid or generate_uuid(),
                "version": list(PACK_VERSION),
            }
        ],
    }


def render_target_manifest(
    name: str,
    description: str,
    min_engine_version: str = DEFAULT_MIN_ENGINE_VERSION,
    rng: Optional[random.Random] = None,
) -> bytes:
    manifest = build_target_manifest(name, description, min_engine_version, rng=rng)
    return _dump(bedrock_manifest_document(manifest))
