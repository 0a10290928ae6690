"""
Tolerant guest name lookup and autocomplete
"""

from typing import List, Optional, Sequence

from seatsync.core.config import settings
from seatsync.schemas.guest import GuestRecord


def normalize(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def matches(query: str, guest: GuestRecord) -> bool:
    """Check a normalized query against one guest.

    The query may be any fragment of the full name, or exactly the first
    name, the last name, or "first last".
    """
    if not query:
        return False

    first = normalize(guest.first_name)
    last = normalize(guest.last_name)
    if query in normalize(guest.display_name):
        return True
    if query == first or query == last:
        return True
    return bool(first or last) and query == f"{first} {last}"


def resolve(query: str, candidates: Sequence[GuestRecord]) -> Optional[GuestRecord]:
    """Return the first candidate matching ``query``, in candidate order"""
    needle = normalize(query)
    for guest in candidates:
        if matches(needle, guest):
            return guest
    return None


def suggest(prefix: str, candidates: Sequence[GuestRecord], limit: int) -> List[str]:
    """Display names containing ``prefix``, at most ``limit`` of them.

    Prefixes shorter than ``SUGGEST_MIN_PREFIX`` characters return nothing.
    """
    needle = normalize(prefix)
    if len(needle) < settings.SUGGEST_MIN_PREFIX or limit <= 0:
        return []

    suggestions: List[str] = []
    for guest in candidates:
        full_name = guest.display_name
        if needle in normalize(full_name):
            suggestions.append(full_name)
            if len(suggestions) >= limit:
                break
    return suggestions
