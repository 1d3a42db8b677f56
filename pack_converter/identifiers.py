from __future__ import annotations

import random
import re
import uuid
from typing import Optional

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

_SYSTEM_RANDOM = random.SystemRandom()


def generate_uuid(rng: Optional[random.Random] = None) -> str:
    """Return a random version-4 identifier in 8-4-4-4-12 hex form.

    *rng* only needs ``getrandbits``; pass a seeded ``random.Random`` to get a
    reproducible sequence.
    """
    source = rng if rng is not None else _SYSTEM_RANDOM
    return str(uuid.UUID(int=source.getrandbits(128), version=4))


def is_uuid4(text: str) -> bool:
    return bool(UUID4_PATTERN.match(text))
