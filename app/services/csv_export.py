from __future__ import annotations

import csv
import json
import math
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from io import StringIO
from typing import Any, Iterable

from fastapi.responses import StreamingResponse

_NEEDS_QUOTING = (",", '"', "\n", "\r")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        text = json.dumps(value, default=str)
        return '"' + text.replace('"', '""') + '"'
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, Enum):
        text = str(value.value)
    elif isinstance(value, (datetime, date)):
        text = value.isoformat()
    elif isinstance(value, Decimal):
        text = format(value, "f")
    else:
        text = str(value)
    if any(marker in text for marker in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def array_to_csv(rows: Iterable[dict], headers: list[str] | None = None) -> str:
    rows = list(rows)
    if not rows and not headers:
        return ""
    headers = headers or list(rows[0].keys())
    lines = [",".join(_cell(header) for header in headers)]
    for row in rows:
        lines.append(",".join(_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


def _parse_value(text: str) -> Any:
    if text == "":
        return None
    stripped = text.strip()
    if stripped[:1] in ("{", "["):
        try:
            return json.loads(stripped)
        except ValueError:
            return text
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return text
    # "nan" and "inf" stay strings
    return number if math.isfinite(number) else text


def parse_csv(text: str) -> list[dict]:
    """Parse CSV text produced by :func:`array_to_csv` back into rows."""
    if not text or not text.strip():
        return []
    reader = csv.reader(StringIO(text))
    rows = [row for row in reader if row]
    if not rows:
        return []
    headers = rows[0]
    return [
        {header: _parse_value(row[index]) if index < len(row) else None for index, header in enumerate(headers)}
        for row in rows[1:]
    ]


def csv_response(rows: Iterable[dict], filename: str, headers: list[str] | None = None) -> StreamingResponse:
    content = array_to_csv(rows, headers)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
