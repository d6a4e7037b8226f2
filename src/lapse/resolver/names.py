"""Name normalization and validation."""

import re

NAME_PATTERN = re.compile(r"^[a-z0-9-]+\.eth$", re.IGNORECASE)


def normalize_name(name: str) -> str:
    return name.strip().lower()


def is_valid_name(name: str) -> bool:
    """Check that ``name`` looks like a registrable name (``label.eth``)."""
    return bool(NAME_PATTERN.match(name.strip()))
