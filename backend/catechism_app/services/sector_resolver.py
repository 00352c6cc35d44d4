"""
Sector resolution for free-text labels.

Sector identity arrives from the sectors table (code/name), from class rows
(numeric ``sector_id`` or denormalized sector/branch/name columns) and from
teacher rows (free-text ``sector``).  Every label is normalized and matched
against a small closed set of tokens.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from catechism_app.schemas.dashboard import SectorMetrics
from catechism_app.services.scoring import round_score
from catechism_app.utils.text import normalize_text, collation_key

ADHOC_SECTOR_ORDER = 900
UNREGISTERED_SECTOR_ORDER = 999


@dataclass(frozen=True)
class SectorIdentifier:
    key: str
    label: str
    order: int


CHIEN = SectorIdentifier("CHIEN", "Chiên con", 0)
AU = SectorIdentifier("AU", "Ấu nhi", 1)
THIEU = SectorIdentifier("THIEU", "Thiếu nhi", 2)
NGHIA = SectorIdentifier("NGHIA", "Nghĩa sĩ", 3)

DEFAULT_SECTOR_IDENTIFIERS: Tuple[SectorIdentifier, ...] = (CHIEN, AU, THIEU, NGHIA)
KNOWN_SECTOR_KEYS = frozenset(identifier.key for identifier in DEFAULT_SECTOR_IDENTIFIERS)

# Matching priority. AU must stay last: it is a two-letter token that also
# occurs inside other normalized labels.
SECTOR_MATCH_RULES: Tuple[Tuple[str, SectorIdentifier], ...] = (
    ("CHIEN", CHIEN),
    ("NGHIA", NGHIA),
    ("THIEU", THIEU),
    ("AU", AU),
)


def match_known_sector(normalized: str) -> Optional[SectorIdentifier]:
    """Return the known sector whose token occurs in an already-normalized label."""
    if not normalized:
        return None
    for token, identifier in SECTOR_MATCH_RULES:
        if token in normalized:
            return identifier
    return None


def resolve_sector_identifier(*candidates: Any) -> Optional[SectorIdentifier]:
    """
    Resolve the first recognizable sector among candidate labels.

    Candidates are checked in the order given.  If none contains a known
    token, the first non-empty candidate becomes an ad-hoc sector keyed by
    its normalized form.  Returns None when every candidate is empty.
    """
    fallback: Optional[SectorIdentifier] = None

    for candidate in candidates:
        if candidate is None:
            continue
        trimmed = str(candidate).strip()
        if not trimmed:
            continue
        normalized = normalize_text(trimmed)
        if not normalized:
            continue

        identifier = match_known_sector(normalized)
        if identifier:
            return identifier

        if fallback is None:
            fallback = SectorIdentifier(key=normalized, label=trimmed, order=ADHOC_SECTOR_ORDER)

    return fallback


def resolve_known_sector(*candidates: Any) -> Optional[SectorIdentifier]:
    """Like resolve_sector_identifier but discards ad-hoc results."""
    identifier = resolve_sector_identifier(*candidates)
    if identifier and identifier.key in KNOWN_SECTOR_KEYS:
        return identifier
    return None


@dataclass
class SectorMeta:
    label: str
    order: int


@dataclass
class SectorAccumulator:
    total_classes: int = 0
    total_students: int = 0
    total_teachers: int = 0
    attendance_sum: float = 0.0
    attendance_count: int = 0
    study_sum: float = 0.0
    study_count: int = 0

    def add_attendance(self, score: Optional[float]) -> None:
        if score is None:
            return
        self.attendance_sum += score
        self.attendance_count += 1

    def add_study(self, average: Optional[float]) -> None:
        if average is None:
            return
        self.study_sum += average
        self.study_count += 1


class SectorRegistry:
    """
    Sector metadata and accumulators for a single aggregation pass.

    A registry is created per report and thrown away afterwards; nothing is
    shared between requests.
    """

    def __init__(self, seed: Iterable[SectorIdentifier] = DEFAULT_SECTOR_IDENTIFIERS):
        self._meta: Dict[str, SectorMeta] = {}
        self._accumulators: Dict[str, SectorAccumulator] = {}
        for identifier in seed:
            self.ensure(identifier)

    def __contains__(self, key: str) -> bool:
        return key in self._meta

    def __len__(self) -> int:
        return len(self._accumulators)

    def keys(self) -> List[str]:
        return list(self._accumulators.keys())

    def register(self, key: str, label: Optional[str] = None, order: Optional[int] = None) -> None:
        """Register a sector key, merging with any existing metadata.

        A label equal to the key counts as generic and is replaced by a real
        one; a lower order always wins.
        """
        existing = self._meta.get(key)
        if existing is None:
            self._meta[key] = SectorMeta(
                label=label or key,
                order=order if order is not None else UNREGISTERED_SECTOR_ORDER,
            )
        else:
            if label and existing.label != label and existing.label == key:
                existing.label = label
            if order is not None and order < existing.order:
                existing.order = order

        if key not in self._accumulators:
            self._accumulators[key] = SectorAccumulator()

    def ensure(self, identifier: Optional[SectorIdentifier]) -> Optional[str]:
        if identifier is None:
            return None
        self.register(identifier.key, identifier.label, identifier.order)
        return identifier.key

    def meta(self, key: str) -> SectorMeta:
        return self._meta.get(key) or SectorMeta(label=key, order=UNREGISTERED_SECTOR_ORDER)

    def accumulator(self, key: str) -> SectorAccumulator:
        if key not in self._accumulators:
            self.register(key)
        return self._accumulators[key]

    def finalize(self) -> List[SectorMetrics]:
        """Turn accumulators into metrics sorted by sector order, then label."""
        rows = []
        for key, acc in self._accumulators.items():
            meta = self.meta(key)
            rows.append((meta.order, collation_key(meta.label), SectorMetrics(
                sector=meta.label,
                total_classes=acc.total_classes,
                total_students=acc.total_students,
                total_teachers=acc.total_teachers,
                attendance_avg=(
                    round_score(acc.attendance_sum / acc.attendance_count)
                    if acc.attendance_count > 0 else None
                ),
                study_avg=(
                    round_score(acc.study_sum / acc.study_count)
                    if acc.study_count > 0 else None
                ),
            )))

        rows.sort(key=lambda row: (row[0], row[1]))
        return [metrics for _, _, metrics in rows]