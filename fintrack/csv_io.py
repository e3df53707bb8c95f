import csv
import io
import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from fintrack.config import CSV_COLUMNS
from fintrack.domain import Transaction
from fintrack.filters import sorted_by_date
from fintrack.functional import Either, Right, failure
from fintrack.transforms import normalize_transaction

logger = logging.getLogger(__name__)


def transactions_frame(trans: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {"Date": t.date, "Category": t.category, "Amount": t.amount, "Type": t.type, "Notes": t.notes}
        for t in sorted_by_date(trans)
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(trans: Iterable[Transaction]) -> str:
    """Render transactions as CSV with every field double-quoted."""
    return transactions_frame(trans).to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def _clean(field: str) -> str:
    field = field.strip()
    if len(field) >= 2 and field[0] == '"' and field[-1] == '"':
        field = field[1:-1].replace('""', '"')
    return field


def parse_csv_row(fields: List[str]) -> Optional[dict]:
    if len(fields) < 3:
        return None
    parts = [_clean(f) for f in fields[:4]]
    # unquoted commas in notes split it into extra fields
    notes = _clean(",".join(fields[4:]))
    kind = parts[3] if len(parts) > 3 else ""
    return {
        "date": parts[0],
        "category": parts[1],
        "amount": parts[2],
        "type": "income" if "income" in kind.lower() else "expense",
        "notes": notes,
    }


def parse_csv_line(line: str) -> Optional[dict]:
    return parse_csv_row(next(csv.reader([line]), []))


def decode_upload(data: bytes) -> Either[dict, str]:
    """Decode an uploaded CSV file, accepting UTF-8 with or without a BOM."""
    try:
        return Right(data.decode("utf-8-sig"))
    except UnicodeDecodeError as exc:
        logger.warning("Rejected CSV upload that is not UTF-8: %s", exc)
        return failure("unreadable_file", "The file is not UTF-8 encoded text")


def import_csv(text: str, default_date: Optional[str] = None) -> Tuple[Transaction, ...]:
    """Parse exported CSV back into transactions.

    The first row is treated as a header. Rows without a positive amount
    are skipped; rows without a date get ``default_date`` (today by default).
    """
    fallback = default_date or date.today().isoformat()
    imported = []
    skipped = 0
    rows = csv.reader(io.StringIO(text))
    next(rows, None)
    for fields in rows:
        if not any(f.strip() for f in fields):
            continue
        row = parse_csv_row(fields)
        tx = normalize_transaction({**row, "date": row["date"] or fallback}) if row else None
        if tx is None:
            skipped += 1
            continue
        imported.append(tx)
    if skipped:
        logger.info("Skipped %d unreadable CSV rows", skipped)
    return tuple(imported)
