"""Classify movement rows and aggregate coffee-combo outflows per entity."""
import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from agr_sync.parse.models import CoffeeAggregate, LedgerEntry, MovementRow, Outflow
from agr_sync.parse.normalize import normalize

logger = logging.getLogger(__name__)

COFFEE_LABELS = [
    "(1064) GASEOSA + ALFAJOR",
    "(1063) CANJE CAFE + ALFAJOR",
    "(1062) CAFE CHICO PARA LLEVAR + 2 FACTURAS",
    "(1062) CAFE + FACTURA O ALFAJOR",
]
_COFFEE_LABELS_NORM = [normalize(label) for label in COFFEE_LABELS]

# Fixed order of every outflow list
ENTITIES = ["Monteverde", "Tobago SA 1", "Grupo GEN", "Bettica SA"]
DEFAULT_ENTITY = "Grupo GEN"

# EGRESO (es), EGRESS (en), SALIDA, OUT, EXIT
_OUTFLOW_RE = re.compile(r"(EGRES|EGRESS|SALID|OUT|EXIT)")

KEY_SEPARATOR = "|"

Buckets = dict[str, dict[str, int]]


def match_coffee_label(reward_name: str | None) -> Optional[str]:
    """First coffee label (original casing) contained in the reward name."""
    name = normalize(reward_name)
    if not name:
        return None
    for label, label_norm in zip(COFFEE_LABELS, _COFFEE_LABELS_NORM):
        if label_norm in name:
            return label
    return None


def is_coffee(reward_name: str | None) -> bool:
    return match_coffee_label(reward_name) is not None


def is_outflow(movement_type: str | None) -> bool:
    return bool(_OUTFLOW_RE.search(normalize(movement_type)))


def map_entity(entity_text: str | None) -> str:
    """
    Canonical entity label by ordered substring checks.

    Text that matches nothing falls back to "Grupo GEN".
    """
    text = normalize(entity_text)
    if "MONTEVERDE" in text:
        return "Monteverde"
    if "TOBAGO" in text:
        return "Tobago SA 1"
    if "BETTICA" in text:
        return "Bettica SA"
    if "GRUPO" in text and "GEN" in text:
        return "Grupo GEN"
    return DEFAULT_ENTITY


def classify_and_bucket(rows: Iterable[MovementRow]) -> tuple[Buckets, list[MovementRow]]:
    """
    Split rows into coffee outflow buckets and non-coffee rows.

    Coffee rows that are not outflows land in neither output.
    """
    buckets: Buckets = {}
    other_rows: list[MovementRow] = []
    coffee_seen = 0
    skipped_non_outflow = 0

    for row in rows:
        label = match_coffee_label(row.reward_name)
        if label is None:
            other_rows.append(row)
            continue

        coffee_seen += 1
        if not is_outflow(row.movement_type):
            skipped_non_outflow += 1
            continue

        counts = buckets.setdefault(label, {entity: 0 for entity in ENTITIES})
        counts[map_entity(row.entity)] += max(row.quantity, 0)

    logger.info(
        f"Classified movements: coffee={coffee_seen} "
        f"(outflow={coffee_seen - skipped_non_outflow}), other={len(other_rows)}"
    )
    return buckets, other_rows


def build_coffee_aggregates(
    buckets: Buckets,
    captured_at: datetime,
    period_month: str,
) -> list[CoffeeAggregate]:
    return [
        CoffeeAggregate(
            reward_type=label,
            outflows=[Outflow(entity=entity, quantity=counts.get(entity, 0)) for entity in ENTITIES],
            captured_at=captured_at,
            period_month=period_month,
        )
        for label, counts in buckets.items()
    ]


def derive_key(row: MovementRow) -> str:
    """Composite ledger id: the eight identity fields joined by '|'."""
    return KEY_SEPARATOR.join(
        [
            row.date_text,
            row.entity,
            row.movement_type,
            row.document_ref,
            row.reward_name,
            row.source_deposit,
            row.dest_deposit,
            str(row.quantity),
        ]
    )


def parse_portal_date(text: str | None) -> Optional[datetime]:
    """Parse 'DD/MM/YYYY[ HH:MM:SS]' as local time; None when malformed."""
    if not text:
        return None
    parts = text.strip().split(" ", 1)
    date_part = parts[0]
    time_part = parts[1].strip() if len(parts) > 1 else "00:00:00"

    try:
        day, month, year = (int(x) for x in date_part.split("/"))
    except ValueError:
        return None
    if not day or not month or not year:
        return None

    clock = []
    for piece in (time_part.split(":") + ["0", "0", "0"])[:3]:
        try:
            clock.append(int(piece))
        except ValueError:
            clock.append(0)

    try:
        return datetime(year, month, day, *clock)
    except ValueError:
        return None


def build_ledger_entries(
    rows: Iterable[MovementRow],
    period_month: str,
    captured_at: datetime,
) -> list[LedgerEntry]:
    """One entry per distinct derived key; the last-seen row wins."""
    entries: dict[str, LedgerEntry] = {}
    for row in rows:
        key = derive_key(row)
        entries[key] = LedgerEntry(
            id=key,
            date_raw=row.date_text,
            date_parsed=parse_portal_date(row.date_text),
            entity=row.entity,
            movement_type=row.movement_type,
            document_ref=row.document_ref,
            reward_name=row.reward_name,
            source_deposit=row.source_deposit,
            dest_deposit=row.dest_deposit,
            quantity=row.quantity,
            is_coffee_combo=is_coffee(row.reward_name),
            period_month=period_month,
            captured_at=captured_at,
        )
    return list(entries.values())
