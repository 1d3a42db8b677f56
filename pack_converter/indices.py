from __future__ import annotations

import json
from typing import Dict, List, Mapping, Set, Tuple

TERRAIN_TEXTURE_INDEX = "textures/terrain_texture.json"
ITEM_TEXTURE_INDEX = "textures/item_texture.json"

RESOURCE_PACK_NAME = "vanilla"
ATLAS_PADDING = 8
ATLAS_MIP_LEVELS = 4

# (index file, atlas name, bucket marker)
ATLASES: Tuple[Tuple[str, str, str], ...] = (
    (TERRAIN_TEXTURE_INDEX, "atlas.terrain", "textures/blocks/"),
    (ITEM_TEXTURE_INDEX, "atlas.items", "textures/items/"),
)


def texture_id(target_path: str) -> str:
    """``textures/blocks/stone.png`` -> ``blocks/stone``."""
    return target_path.replace("textures/", "", 1).replace(".png", "", 1)


def collect_texture_ids(table: Mapping[str, str]) -> Dict[str, List[str]]:
    """Bucket mapped Bedrock paths per atlas, keeping first-seen order without repeats."""
    collected: Dict[str, List[str]] = {index_path: [] for index_path, _, _ in ATLASES}
    seen: Dict[str, Set[str]] = {index_path: set() for index_path, _, _ in ATLASES}
    for target_path in table.values():
        for index_path, _atlas, marker in ATLASES:
            if marker in target_path:
                identifier = texture_id(target_path)
                if identifier not in seen[index_path]:
                    seen[index_path].add(identifier)
                    collected[index_path].append(identifier)
                break
    return collected


def synthesize(table: Mapping[str, str]) -> Dict[str, bytes]:
    """Build the atlas index documents for a ``source -> target`` path table."""
    collected = collect_texture_ids(table)
    documents: Dict[str, bytes] = {}
    for index_path, atlas_name, _marker in ATLASES:
        document = {
            "resource_pack_name": RESOURCE_PACK_NAME,
            "texture_name": atlas_name,
            "padding": ATLAS_PADDING,
            "num_mip_levels": ATLAS_MIP_LEVELS,
            "textures": collected[index_path],
        }
        documents[index_path] = json.dumps(document, indent=4).encode("utf-8")
    return documents
