import math
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from .errors import ValidationError

EXCEL_EXTENSIONS = (".xlsx", ".xls")
CSV_EXTENSIONS = (".csv",)


def now() -> datetime:
    """Timezone-aware UTC timestamp used for every stored date."""
    return datetime.now(timezone.utc)


def new_run_id(moment: datetime | None = None) -> str:
    """RUN-<epoch millis>-<short random suffix>; unique even within one millisecond."""
    moment = moment or now()
    return f"RUN-{int(moment.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def load_csv(file_path: Path) -> pd.DataFrame | None:
    """
    A CSV loader with an encoding fallback, reading every cell as raw text.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1 - A permissive fallback that never fails but might misinterpret characters.
    """
    read_options = dict(
        header=None,
        names=["text", "qty"],
        index_col=False,
        dtype=object,
        engine="python",
        # Rows with more cells than A/B keep the first two.
        on_bad_lines=lambda fields: fields[:2],
    )
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig", **read_options)
    except UnicodeDecodeError:
        print(f"INFO: UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
        return pd.read_csv(file_path, encoding="latin-1", **read_options)
    except pd.errors.EmptyDataError:
        return None


def load_excel(file_path: Path) -> pd.DataFrame | None:
    """First sheet only, no header row."""
    df = pd.read_excel(file_path, sheet_name=0, header=None, dtype=object)
    if df.empty:
        return None
    return df


def _cell(value):
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def dataframe_to_rows(df: pd.DataFrame | None) -> list[tuple]:
    """Column A is the line text, column B the quantity."""
    if df is None or df.empty:
        return []
    rows = []
    for values in df.itertuples(index=False, name=None):
        text = _cell(values[0]) if len(values) > 0 else None
        qty = _cell(values[1]) if len(values) > 1 else None
        rows.append((text, qty))
    return rows


def load_rows(file_path: Path, original_name: str | None = None) -> list[tuple]:
    """
    Reads an uploaded report into ordered (text, qty) rows.
    The extension of ``original_name`` (or of the path) picks the decoder.
    """
    file_path = Path(file_path)
    suffix = Path(original_name or file_path.name).suffix.lower()

    if suffix in EXCEL_EXTENSIONS:
        return dataframe_to_rows(load_excel(file_path))
    if suffix in CSV_EXTENSIONS:
        return dataframe_to_rows(load_csv(file_path))
    raise ValidationError("Unsupported file type. Use .xlsx or .csv")
