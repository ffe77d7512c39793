from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field


@dataclass(slots=True)
class RowIssue:
    line: int
    code: str
    message: str


@dataclass(slots=True)
class ParsedArchive:
    header: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)
    issues: list[RowIssue] = field(default_factory=list)


def parse_archive_csv(text: str) -> ParsedArchive:
    """Parse a header-delimited CSV table.

    Malformed rows (csv-level errors, too few or too many fields) are dropped and
    reported in ``issues``; they never stop the well-formed rows from coming through.
    Blank lines are skipped.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    parsed = ParsedArchive()

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            parsed.issues.append(RowIssue(line=reader.line_num, code="csv_error", message=str(exc)))
            continue

        if not any(cell.strip() for cell in row):
            continue

        if not parsed.header:
            parsed.header = [cell.strip() for cell in row]
            continue

        expected = len(parsed.header)
        if len(row) < expected:
            parsed.issues.append(
                RowIssue(
                    line=reader.line_num,
                    code="too_few_fields",
                    message=f"Expected {expected} fields but parsed {len(row)}",
                )
            )
            continue
        if len(row) > expected:
            parsed.issues.append(
                RowIssue(
                    line=reader.line_num,
                    code="too_many_fields",
                    message=f"Expected {expected} fields but parsed {len(row)}",
                )
            )
            continue

        parsed.rows.append({name: value.strip() for name, value in zip(parsed.header, row)})

    return parsed
