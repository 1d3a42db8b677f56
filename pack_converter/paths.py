"""
paths.py
========

Bidirectional path rules between the Java Edition and Bedrock Edition resource
pack layouts.

* Java:    ``assets/<namespace>/textures/block/stone.png``, ``pack.png``
* Bedrock: ``textures/blocks/stone.png``, ``pack_icon.png``

The rules are pure functions of the input string. Every path is classified
into a :class:`MappingOutcome`; only ``MAPPED`` carries a target path. The
other outcomes all mean "leave it out of the converted pack" but are kept
apart so callers can report why an entry was dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import DEFAULT_NAMESPACE

JAVA_MANIFEST = "pack.mcmeta"
JAVA_ICON = "pack.png"
BEDROCK_MANIFEST = "manifest.json"
BEDROCK_ICON = "pack_icon.png"
BEDROCK_TEXTURE_ROOT = "textures/"

# Any namespace root is accepted on the way in; the namespace setting only
# picks the root written on the way out.
JAVA_TEXTURE_ROOT = re.compile(r"^assets/[^/]+/textures/")

# Bedrock files that are regenerated by the converter (or have no Java
# counterpart) and are never copied through the texture rule.
BEDROCK_REGENERATED_FILES = frozenset(
    {
        "manifest.json",
        "terrain_texture.json",
        "item_texture.json",
        "flipbook_textures.json",
        "textures_list.json",
    }
)

# Physically based rendering companions (texture sets and their maps on
# Bedrock). The short LabPBR `_n`/`_s` names also occur on plain textures
# and are not listed.
PBR_SUFFIXES: Tuple[str, ...] = (
    ".texture_set.json",
    "_mer.png",
    "_mers.png",
    "_normal.png",
    "_heightmap.png",
)
ENTITY_GEOMETRY_SUFFIXES: Tuple[str, ...] = (".geo.json", ".jem", ".jpm")
ENTITY_GEOMETRY_DIRS: Tuple[str, ...] = ("models/entity/", "optifine/cem/")

# (java segment, bedrock segment). Only the first matching pair is applied.
CATEGORY_SEGMENTS: Tuple[Tuple[str, str], ...] = (
    ("/block/", "/blocks/"),
    ("/item/", "/items/"),
    ("/entity/", "/entity/"),
)


class MappingOutcome(str, Enum):
    MAPPED = "mapped"
    KNOWN_AUXILIARY = "known_auxiliary"
    UNSUPPORTED = "unsupported"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class PathMapping:
    outcome: MappingOutcome
    target: Optional[str] = None

    @property
    def mapped(self) -> bool:
        return self.outcome is MappingOutcome.MAPPED


_KNOWN_AUXILIARY = PathMapping(MappingOutcome.KNOWN_AUXILIARY)
_UNSUPPORTED = PathMapping(MappingOutcome.UNSUPPORTED)
_UNRECOGNIZED = PathMapping(MappingOutcome.UNRECOGNIZED)


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def java_texture_prefix(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"assets/{namespace}/textures/"


def is_unsupported_asset(path: str) -> bool:
    """PBR material data and custom entity geometry, in either layout."""
    lower = normalize_path(path).lower()
    if lower.endswith(PBR_SUFFIXES) or lower.endswith(ENTITY_GEOMETRY_SUFFIXES):
        return True
    return any(
        lower.startswith(directory) or f"/{directory}" in lower
        for directory in ENTITY_GEOMETRY_DIRS
    )


def _substitute_category(path: str, forward: bool) -> str:
    for java_segment, bedrock_segment in CATEGORY_SEGMENTS:
        old, new = (java_segment, bedrock_segment) if forward else (bedrock_segment, java_segment)
        if old in path:
            # /entity/ is an explicit identity rule; it still stops the search.
            return path.replace(old, new, 1)
    return path


def classify_java_path(path: str, namespace: str = DEFAULT_NAMESPACE) -> PathMapping:
    """Classify a Java pack entry.

    Textures under any ``assets/<namespace>/textures/`` root are mapped.
    *namespace* is accepted so both classifiers share one signature; it
    does not restrict which roots are read.
    """
    del namespace
    normalized = normalize_path(path)

    if normalized == JAVA_ICON:
        return PathMapping(MappingOutcome.MAPPED, BEDROCK_ICON)
    if normalized == JAVA_MANIFEST:
        return _KNOWN_AUXILIARY
    if is_unsupported_asset(normalized):
        return _UNSUPPORTED

    root = JAVA_TEXTURE_ROOT.match(normalized)
    if root is not None:
        mapped = BEDROCK_TEXTURE_ROOT + normalized[root.end():]
        return PathMapping(MappingOutcome.MAPPED, _substitute_category(mapped, forward=True))

    return _UNRECOGNIZED


def classify_bedrock_path(path: str, namespace: str = DEFAULT_NAMESPACE) -> PathMapping:
    normalized = normalize_path(path)

    if normalized == BEDROCK_ICON:
        return PathMapping(MappingOutcome.MAPPED, JAVA_ICON)
    if normalized.rsplit("/", 1)[-1] in BEDROCK_REGENERATED_FILES:
        return _KNOWN_AUXILIARY
    if is_unsupported_asset(normalized):
        return _UNSUPPORTED

    if normalized.startswith(BEDROCK_TEXTURE_ROOT):
        mapped = java_texture_prefix(namespace) + normalized[len(BEDROCK_TEXTURE_ROOT):]
        return PathMapping(MappingOutcome.MAPPED, _substitute_category(mapped, forward=False))

    return _UNRECOGNIZED


def map_java_to_bedrock_path(path: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
    return classify_java_path(path, namespace).target


def map_bedrock_to_java_path(path: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
    return classify_bedrock_path(path, namespace).target
