"""Table numbering: gap-filling allocation, collision retry and self-healing."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from urllib.parse import quote

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qrorder.core.errors import NotFoundError, TableAllocationError, ValidationError, is_unique_violation
from qrorder.models.table import TABLE_STATUSES, DiningTable
from qrorder.schemas.table import TableDTO

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS: int = 3
MAX_SCAN: int = 100_000
SEED_TABLE_COUNT: int = 5
_NUMERIC_RE = re.compile(r"^\d+$")


def allocate_table_numbers(used: set[str], count: int, max_scan: int = MAX_SCAN) -> list[str]:
    """Return the ``count`` smallest positive integers (as strings) not in ``used``."""
    taken = set(used)
    result: list[str] = []
    candidate = 1
    while len(result) < count:
        if candidate > max_scan:
            raise TableAllocationError("Table number scan limit exceeded")
        number = str(candidate)
        if number not in taken:
            result.append(number)
            taken.add(number)
        candidate += 1
    return result


def read_used_numbers(db: Session) -> set[str]:
    return {str(number) for number in db.scalars(select(DiningTable.table_number)) if number is not None}


def table_sort_key(table: DiningTable) -> tuple[int, int, str]:
    """Numeric ordering so that "10" sorts after "2"; malformed numbers go last."""
    number = (table.table_number or "").strip()
    if _NUMERIC_RE.match(number):
        return (0, int(number), number)
    return (1, 0, number)


def sort_tables(tables: Sequence[DiningTable]) -> list[DiningTable]:
    return sorted(tables, key=table_sort_key)


def qr_code_url_for(table_number: str, public_base_url: str) -> str:
    return f"{public_base_url.rstrip('/')}/?table={quote(table_number)}"


def table_to_dto(table: DiningTable, public_base_url: str) -> TableDTO:
    number = table.table_number or ""
    return TableDTO(
        id=table.id,
        table_number=number,
        status=table.status,
        capacity=table.capacity or 0,
        qr_code_url=table.qr_code_url or (qr_code_url_for(number, public_base_url) if number else ""),
    )


def create_tables(
    db: Session,
    count: int,
    *,
    capacity: int = 0,
    qr_code_url: str | None = None,
    max_attempts: int = MAX_ALLOCATION_ATTEMPTS,
) -> list[DiningTable]:
    """Allocate and insert ``count`` tables, retrying when another writer wins a number.

    Only uniqueness violations are retried; each attempt re-reads the used
    numbers from scratch.
    """
    if count < 1:
        raise ValidationError("At least one table must be created")

    for attempt in range(1, max_attempts + 1):
        numbers = allocate_table_numbers(read_used_numbers(db), count)
        rows = [
            DiningTable(table_number=number, status="available", capacity=capacity, qr_code_url=qr_code_url)
            for number in numbers
        ]
        db.add_all(rows)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not is_unique_violation(exc):
                raise
            logger.warning(
                "[TABLES] Table number collision on attempt %s/%s for %s",
                attempt,
                max_attempts,
                numbers,
            )
            continue

        for row in rows:
            db.refresh(row)
        logger.info("[TABLES] Created tables %s", numbers)
        return sort_tables(rows)

    raise TableAllocationError("Failed to create tables")


def create_table_with_number(
    db: Session,
    table_number: str,
    *,
    capacity: int = 0,
    qr_code_url: str | None = None,
) -> DiningTable:
    number = table_number.strip()
    if not _NUMERIC_RE.match(number) or int(number) < 1:
        raise ValidationError("Table number must be a positive integer")
    number = str(int(number))

    table = DiningTable(table_number=number, status="available", capacity=capacity, qr_code_url=qr_code_url)
    db.add(table)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ValidationError("Table number already exists") from exc
        raise
    db.refresh(table)
    return table


def needs_renumbering(tables: Sequence[DiningTable]) -> bool:
    """Return whether any table number is missing, non-numeric or duplicated."""
    seen: set[str] = set()
    for table in tables:
        number = (table.table_number or "").strip()
        if not _NUMERIC_RE.match(number) or number in seen:
            return True
        seen.add(number)
    return False


def _seed_tables(db: Session) -> list[DiningTable]:
    rows = [
        DiningTable(table_number=str(number), status="available", capacity=0)
        for number in range(1, SEED_TABLE_COUNT + 1)
    ]
    db.add_all(rows)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise
        # A concurrent reader seeded first.
        return list(db.scalars(select(DiningTable)))
    logger.info("[TABLES] Seeded %s default tables", SEED_TABLE_COUNT)
    return rows


def renumber_tables(db: Session, tables: Sequence[DiningTable]) -> list[DiningTable]:
    """Renumber all tables 1..n by creation time in a single transaction."""
    ordered = sorted(tables, key=lambda table: (table.created_at, table.id))
    for table in ordered:
        table.table_number = None
    # Clear first so the unique constraint never sees a transient duplicate.
    db.flush()
    for index, table in enumerate(ordered, start=1):
        table.table_number = str(index)
    db.commit()
    logger.warning("[TABLES] Renumbered %s tables sequentially", len(ordered))
    return ordered


def normalize_tables(db: Session) -> tuple[list[DiningTable], bool]:
    """Seed an empty table set or repair its numbering.

    Returns the tables in display order and whether anything was written.
    """
    tables = list(db.scalars(select(DiningTable)))
    changed = False
    if not tables:
        tables = _seed_tables(db)
        changed = True
    if needs_renumbering(tables):
        tables = renumber_tables(db, tables)
        changed = True
    return sort_tables(tables), changed


def list_tables(db: Session, *, self_heal: bool) -> list[DiningTable]:
    if self_heal:
        tables, _ = normalize_tables(db)
        return tables
    return sort_tables(list(db.scalars(select(DiningTable))))


def get_table(db: Session, table_id: str) -> DiningTable:
    table = db.get(DiningTable, table_id)
    if table is None:
        raise NotFoundError("Table not found")
    return table


def update_table(
    db: Session,
    table_id: str,
    *,
    status: str | None = None,
    capacity: int | None = None,
    qr_code_url: str | None = None,
    fields_set: set[str] | None = None,
) -> DiningTable:
    if status is not None and status not in TABLE_STATUSES:
        raise ValidationError("Invalid table status")
    table = get_table(db, table_id)
    if status is not None:
        table.status = status
    if capacity is not None:
        table.capacity = capacity
    if fields_set is not None and "qr_code_url" in fields_set:
        table.qr_code_url = qr_code_url
    db.commit()
    db.refresh(table)
    return table


def delete_table(db: Session, table_id: str) -> None:
    table = get_table(db, table_id)
    db.delete(table)
    db.commit()
