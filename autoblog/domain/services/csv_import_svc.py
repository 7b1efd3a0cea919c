# autoblog/domain/services/csv_import_svc.py
from __future__ import annotations
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from pydantic import ValidationError

from autoblog.domain.models.content import KeywordIn

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("primary_keyword", "scheduled_date", "scheduled_time")


class CsvFormatError(ValueError):
    """The file is not a usable keyword CSV (empty, undecodable, missing columns)."""


@dataclass
class RowError:
    line: int
    errors: List[str]


@dataclass
class CsvImportResult:
    valid: List[KeywordIn] = field(default_factory=list)
    invalid: List[RowError] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)


def _row_errors(e: ValidationError) -> List[str]:
    msgs = {
        "primary_keyword": "Primary keyword is required",
        "scheduled_date": "Scheduled date must be in YYYY-MM-DD format",
        "scheduled_time": "Scheduled time must be in HH:MM format",
    }
    out = []
    for err in e.errors():
        col = str(err["loc"][0]) if err.get("loc") else ""
        out.append(msgs.get(col, err.get("msg", "invalid value")))
    return out


def parse_keywords_csv(data: bytes) -> CsvImportResult:
    """
    Parse an uploaded keyword CSV. Headers are matched case-insensitively after
    trimming; blank lines are ignored; invalid rows are reported, never kept.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvFormatError("CSV file must be UTF-8 encoded") from e
    if not text.strip():
        raise CsvFormatError("CSV file is empty")

    reader = csv.reader(io.StringIO(text))
    headers = [h.strip().lower() for h in next(reader)]
    missing = [c for c in REQUIRED_COLUMNS if c not in headers]
    if missing:
        raise CsvFormatError(f"Missing required columns: {', '.join(missing)}")
    index: Dict[str, int] = {c: headers.index(c) for c in REQUIRED_COLUMNS}

    result = CsvImportResult()
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        row = {c: (values[i].strip() if i < len(values) else "") for c, i in index.items()}
        try:
            result.valid.append(KeywordIn(**row))
        except ValidationError as e:
            result.invalid.append(RowError(line=reader.line_num, errors=_row_errors(e)))

    logger.info("CSV parsed valid=%s invalid=%s", result.valid_count, result.invalid_count)
    return result
