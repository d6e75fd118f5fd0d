"""
Vocabulary CSV parsing and validation.

Expected format: ``maori,english,description``, UTF-8, with an optional
header row. Validation is all-or-nothing: every row problem is collected
and the whole file is rejected if there is any.
"""
import csv
import io
from typing import Dict, List, Sequence, Union

from core.config import DESCRIPTION_MAX_LENGTH, ENGLISH_MAX_LENGTH, MAORI_MAX_LENGTH
from models.vocabulary_models import Headword

HEADER_KEYWORDS = {"maori", "māori", "english", "description"}


class CSVValidationError(ValueError):
    """The CSV was rejected; ``errors`` lists every problem found."""

    def __init__(self, message: str, errors: Sequence[str] = ()):
        self.errors = list(errors) or [message]
        super().__init__(message)


def is_header_row(row: Sequence[str]) -> bool:
    """A row is a header if any of its first three cells is a column keyword."""
    if len(row) < 3:
        return False
    return any(cell.strip().casefold() in HEADER_KEYWORDS for cell in row[:3])


def _decode(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        return data.lstrip("\ufeff")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CSVValidationError(f"CSV file must be UTF-8 encoded: {e}")


def _validate_row(row_num: int, record: Sequence[str], seen: Dict[str, int]) -> List[str]:
    if len(record) < 3:
        return [f"Row {row_num}: insufficient columns (expected 3, got {len(record)})"]

    maori, english, description = (cell.strip() for cell in record[:3])
    errors = []

    if not maori:
        errors.append(f"Row {row_num}: Māori field is required")
    if not english:
        errors.append(f"Row {row_num}: English field is required")
    if not description:
        errors.append(f"Row {row_num}: Description field is required")

    if len(maori) > MAORI_MAX_LENGTH:
        errors.append(f"Row {row_num}: Māori field exceeds {MAORI_MAX_LENGTH} characters")
    if len(english) > ENGLISH_MAX_LENGTH:
        errors.append(f"Row {row_num}: English field exceeds {ENGLISH_MAX_LENGTH} characters")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(f"Row {row_num}: Description field exceeds {DESCRIPTION_MAX_LENGTH} characters")

    if maori:
        if maori in seen:
            errors.append(
                f"Row {row_num}: Duplicate Māori word '{maori}' (first seen in row {seen[maori]})"
            )
        else:
            seen[maori] = row_num

    return errors


def parse_vocabulary_csv(data: Union[bytes, str]) -> List[Headword]:
    """
    Parse and validate a vocabulary CSV.

    Args:
        data: Raw upload bytes or already-decoded text

    Returns:
        One Headword per data row, in file order

    Raises:
        CSVValidationError: if the file is unreadable, empty, header-only,
            or any row fails validation
    """
    text = _decode(data)
    try:
        records = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise CSVValidationError(f"Failed to read CSV: {e}")

    if not records:
        raise CSVValidationError("CSV file is empty")

    start = 1 if is_header_row(records[0]) else 0
    if start >= len(records):
        raise CSVValidationError("CSV file only contains headers, no data rows")

    headwords: List[Headword] = []
    errors: List[str] = []
    seen: Dict[str, int] = {}

    for offset, record in enumerate(records[start:]):
        row_num = start + offset + 1
        row_errors = _validate_row(row_num, record, seen)
        if row_errors:
            errors.extend(row_errors)
            continue
        maori, english, description = (cell.strip() for cell in record[:3])
        headwords.append(Headword(maori=maori, english=english, description=description))

    if errors:
        raise CSVValidationError("CSV validation failed", errors)

    return headwords
