from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .matching import DuplicateMatcher, MatchSettings
from .models import RECIPIENT_FIELDS, DuplicateMatch, RecipientForDuplicateCheck

logger = logging.getLogger(__name__)


def find_duplicates(
    recipients: Sequence[RecipientForDuplicateCheck],
    settings: Optional[MatchSettings] = None,
) -> List[DuplicateMatch]:
    """Compare every unordered pair once and return matches, strongest first."""
    matcher = DuplicateMatcher(settings)
    matches: List[DuplicateMatch] = []
    seen: Set[Tuple[str, str]] = set()
    for i in range(len(recipients)):
        for j in range(i + 1, len(recipients)):
            match = matcher.check(recipients[i], recipients[j])
            if match is None:
                continue
            # the same record may be listed twice by the caller
            if match.pair_key in seen:
                continue
            seen.add(match.pair_key)
            matches.append(match)
    logger.info("Found %d duplicate pair(s) among %d recipient(s)", len(matches), len(recipients))
    return sorted(matches, key=lambda match: -match.confidence)


def group_duplicates(matches: Iterable[DuplicateMatch]) -> List[List[RecipientForDuplicateCheck]]:
    parent: Dict[str, str] = {}
    recipients: "OrderedDict[str, RecipientForDuplicateCheck]" = OrderedDict()

    def find(x: str) -> str:
        root = parent.setdefault(x, x)
        while parent[root] != root:
            root = parent[root]
        # point every node on the walked path at the root
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return root

    def union(a: str, b: str) -> None:
        root_a, root_b = find(a), find(b)
        if root_a != root_b:
            parent[root_b] = root_a

    for match in matches:
        for recipient in (match.recipient1, match.recipient2):
            recipients.setdefault(recipient.id, recipient)
        union(match.recipient1.id, match.recipient2.id)

    groups: "OrderedDict[str, List[RecipientForDuplicateCheck]]" = OrderedDict()
    for recipient_id, recipient in recipients.items():
        groups.setdefault(find(recipient_id), []).append(recipient)
    return [members for members in groups.values() if len(members) > 1]


def _field(row: Any, key: str) -> Any:
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)


def to_duplicate_checks(rows: Iterable[Any]) -> List[RecipientForDuplicateCheck]:
    """Build comparison snapshots from store rows (mappings or objects)."""
    return [
        RecipientForDuplicateCheck.from_mapping(
            {key: _field(row, key) for key in ("id",) + RECIPIENT_FIELDS}
        )
        for row in rows
    ]


def merge_recipients(
    primary: RecipientForDuplicateCheck, duplicate: RecipientForDuplicateCheck
) -> RecipientForDuplicateCheck:
    """Keep the primary record, filling its blank fields from the duplicate."""
    changes: Dict[str, Any] = {}
    for key in RECIPIENT_FIELDS:
        if not (getattr(primary, key) or "").strip() and getattr(duplicate, key):
            changes[key] = getattr(duplicate, key)
    return primary.replace(**changes) if changes else primary


def dismiss_pair(matches: Iterable[DuplicateMatch], id1: str, id2: str) -> List[DuplicateMatch]:
    target = tuple(sorted((id1, id2)))
    return [match for match in matches if match.pair_key != target]
