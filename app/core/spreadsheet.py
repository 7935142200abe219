"""
Spreadsheet decoding for bulk uploads.

The first sheet is read with its first row as the header. Row numbers follow
the spreadsheet (header is row 1, first data row is row 2) and are kept even
when blank rows in between are dropped.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List
import io
import math
import numpy as np
import pandas as pd
from app.core.errors import DecodeError

HEADER_ROWS = 1


@dataclass(frozen=True)
class SheetRow:
    row_index: int  # 1-based spreadsheet row number
    data: Dict[str, Any]

    def get(self, column: str, default: Any = None) -> Any:
        return self.data.get(column, default)


@dataclass
class DecodedSheet:
    sheet_name: str
    columns: List[str]
    rows: List[SheetRow] = field(default_factory=list)


def normalize_cell(value: Any) -> Any:
    """Convert a pandas cell into a plain Python value (blank cells become None)"""
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        # Excel stores every number as a float, so 5 arrives as 5.0
        if value.is_integer():
            return int(value)
        return value
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def decode_spreadsheet(content: bytes) -> DecodedSheet:
    """Decode the first sheet of an uploaded workbook; raises DecodeError when unreadable"""
    if not content:
        raise DecodeError("uploaded file is empty")

    try:
        workbook = pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
    except Exception as e:  # openpyxl/zipfile raise a wide range of types
        raise DecodeError(f"not a readable spreadsheet: {e}") from e

    if not workbook.sheet_names:
        raise DecodeError("spreadsheet has no sheets")

    sheet_name = str(workbook.sheet_names[0])
    try:
        df = workbook.parse(workbook.sheet_names[0], header=0, dtype=object)
    except Exception as e:
        raise DecodeError(f"failed to read sheet '{sheet_name}': {e}") from e

    columns = [str(c).strip() for c in df.columns.tolist()]
    rows: List[SheetRow] = []
    for position, raw in enumerate(df.itertuples(index=False, name=None)):
        data = {col: normalize_cell(val) for col, val in zip(columns, raw)}
        if all(v is None for v in data.values()):
            continue
        rows.append(SheetRow(row_index=position + HEADER_ROWS + 1, data=data))

    return DecodedSheet(sheet_name=sheet_name, columns=columns, rows=rows)
