# utils.py
import json
from enum import Enum


class ContentKind(str, Enum):
    CROSSWORD = "crossword"
    MCQ = "mcq"


class KeyPrefixError(ValueError):
    pass


KEY_PREFIXES = {"c": ContentKind.CROSSWORD, "m": ContentKind.MCQ}

# Crossword re-registration is allowed (students may re-enter); MCQ registration is idempotent.
ALLOW_DUPLICATE_NAMES = {
    ContentKind.CROSSWORD: True,
    ContentKind.MCQ: False,
}


def kind_for_key(key: str) -> ContentKind:
    """Generated keys start with 'c' (crossword) or 'm' (MCQ)."""
    kind = KEY_PREFIXES.get(key[:1])
    if kind is None:
        raise KeyPrefixError("Invalid key prefix.")
    return kind


def to_text(value):
    """Serialize a structured payload field for a TEXT column. None stays NULL."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
