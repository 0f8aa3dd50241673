from datetime import datetime, timezone
from typing import List, Union

from unistay.matching.filters import ScoredProfile
from unistay.models.filters import SortKey

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created_at(entry: ScoredProfile) -> datetime:
    created = entry.profile.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _recent_key(entry: ScoredProfile):
    # Profiles with a creation time come first; the id is only a fallback.
    if entry.profile.created_at is None:
        return (0, _EPOCH, entry.profile.id or "")
    return (1, _created_at(entry), "")


def rank(scored: List[ScoredProfile], sort_key: Union[SortKey, str] = SortKey.MATCH) -> List[ScoredProfile]:
    """
    Order scored candidates. Python's sort is stable (also with reverse=True),
    so entries with equal keys keep their input order.
    """
    key = SortKey(sort_key)
    if key == SortKey.MATCH:
        return sorted(scored, key=lambda e: e.score, reverse=True)
    if key == SortKey.BUDGET_LOW:
        return sorted(scored, key=lambda e: e.profile.budget or 0)
    if key == SortKey.BUDGET_HIGH:
        return sorted(scored, key=lambda e: e.profile.budget or 0, reverse=True)
    if key == SortKey.RECENT:
        return sorted(scored, key=_recent_key, reverse=True)
    raise ValueError(f"Unsupported sort key: {sort_key}")
