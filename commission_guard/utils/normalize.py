"""Text normalization used to compare names and addresses across sources."""

import re
from typing import List, Optional

_WHITESPACE = re.compile(r"\s+")
_PARTY_SEPARATORS = re.compile(r"\s*(?:;|&|/|\band\b)\s*", re.IGNORECASE)


def normalize_name(name: Optional[str]) -> str:
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name).strip().casefold()


def split_parties(names: Optional[str]) -> List[str]:
    """'JOHN SMITH & JANE SMITH' -> ['john smith', 'jane smith']"""
    if not names:
        return []
    return [normalize_name(p) for p in _PARTY_SEPARATORS.split(names) if normalize_name(p)]


def normalize_address(address: Optional[str]) -> str:
    if not address:
        return ""
    address = address.replace(".", "")
    address = re.sub(r"\s*,\s*", ", ", address)
    return _WHITESPACE.sub(" ", address).strip().casefold()
