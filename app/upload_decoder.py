"""
Upload decoding for meter-reading exports.

Turns raw upload bytes (semicolon CSV or Excel workbook) into a rectangular
grid of cells with no header inference. Section-based exports put several
tables in one sheet, so nothing here assumes row 0 is a header.
"""

import csv
import io
import logging
import re
from typing import Optional

import pandas as pd

from errors import DecodeError
from parse_result import FileKind, empty_grid

log = logging.getLogger(__name__)

# Tried in order; the first clean decode with a semicolon wins.
CANDIDATE_ENCODINGS = ("utf-8-sig", "iso-8859-1", "cp1252")

_SPREADSHEET_EXTENSIONS = ("xlsx", "xls")
_SPREADSHEET_MIME_HINTS = ("spreadsheetml", "ms-excel")
_C1_CONTROLS = re.compile("[\u0080-\u009f]")


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def detect_file_kind(filename: str, mime_type: Optional[str] = None) -> FileKind:
    """Derive the file kind from the MIME type or, failing that, the extension."""
    mime = (mime_type or "").lower()
    ext = _extension(filename)

    if mime == "text/csv" or ext == "csv":
        return FileKind.DELIMITED_TEXT
    if any(hint in mime for hint in _SPREADSHEET_MIME_HINTS) or ext in _SPREADSHEET_EXTENSIONS:
        return FileKind.SPREADSHEET

    shown = f".{ext}" if ext else (mime or "unknown")
    raise DecodeError(
        f"Unsupported file format: {shown}. Upload an Excel (.xlsx, .xls) or CSV file."
    )


def decode_text(file_content: bytes) -> tuple[str, str]:
    """
    Decode delimited-text bytes, trying each candidate encoding in turn.

    An attempt is accepted only if it decodes strictly, leaves no replacement
    or C1 control characters behind, and the text contains a semicolon.
    Latin-1 maps every byte, so the C1 check is what lets Windows-1252 files
    (curly quotes, euro sign) fall through to the cp1252 attempt.

    Returns (text, encoding_used).
    """
    for encoding in CANDIDATE_ENCODINGS:
        try:
            text = file_content.decode(encoding)
        except UnicodeDecodeError:
            log.debug("CSV is not valid %s", encoding)
            continue

        if "\ufffd" in text or _C1_CONTROLS.search(text):
            log.debug("CSV decoded as %s has replacement/control characters", encoding)
            continue
        if ";" not in text:
            log.debug("CSV decoded as %s has no semicolon delimiter", encoding)
            continue

        return text, encoding

    raise DecodeError(
        "Could not decode the CSV file (tried "
        f"{', '.join(CANDIDATE_ENCODINGS)}). Save it as UTF-8 with ';' as separator."
    )


def read_delimited(file_content: bytes) -> pd.DataFrame:
    """Parse semicolon-separated text into a grid, stripping quotes and whitespace.

    Quotes are plain characters here, so an unbalanced quote stays on its own line.
    """
    text, encoding = decode_text(file_content)
    log.info("Decoded CSV upload as %s", encoding)

    rows: list[list[str]] = []
    reader = csv.reader(io.StringIO(text), delimiter=";", quoting=csv.QUOTE_NONE, skipinitialspace=True)
    for raw in reader:
        cells = [cell.replace('"', "").strip() for cell in raw]
        if any(cells):
            rows.append(cells)

    if not rows:
        return empty_grid()

    width = max(len(r) for r in rows)
    padded = [r + [""] * (width - len(r)) for r in rows]
    return pd.DataFrame(padded, dtype=object)


def read_spreadsheet(file_content: bytes, filename: str) -> pd.DataFrame:
    """Read the first sheet of a workbook without promoting any row to headers."""
    engine = "openpyxl" if _extension(filename) == "xlsx" else "xlrd"
    try:
        df = pd.read_excel(io.BytesIO(file_content), engine=engine, sheet_name=0, header=None)
    except Exception as exc:
        log.debug("read_excel with %s failed (%s), retrying with default engine", engine, exc)
        try:
            df = pd.read_excel(io.BytesIO(file_content), sheet_name=0, header=None)
        except Exception as exc2:
            raise DecodeError(f"Could not read the Excel file: {exc2}") from exc2

    df.columns = range(df.shape[1])
    return df.astype(object)


def _clean_cell(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return value


def normalize_grid(df: pd.DataFrame) -> pd.DataFrame:
    """Trim every cell, blank out NaN/None and drop fully-empty rows."""
    if df.empty:
        return empty_grid()

    cleaned = df.astype(object).apply(lambda col: col.map(_clean_cell))
    non_empty = cleaned.apply(lambda row: any(cell != "" for cell in row), axis=1)
    cleaned = cleaned[non_empty].reset_index(drop=True)
    cleaned.columns = range(cleaned.shape[1])
    return cleaned


def read_upload(
    file_content: bytes,
    filename: str,
    mime_type: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read an uploaded meter export into a normalized raw grid.

    Args:
        file_content: Raw file bytes
        filename: Original filename (for format detection)
        mime_type: Optional declared MIME type, preferred over the extension

    Returns:
        DataFrame of object cells with integer row/column labels.

    Raises:
        DecodeError: empty upload, unsupported kind, or undecodable content.
    """
    if not file_content:
        raise DecodeError("The uploaded file is empty.")

    kind = detect_file_kind(filename, mime_type)
    if kind is FileKind.DELIMITED_TEXT:
        raw = read_delimited(file_content)
    else:
        raw = read_spreadsheet(file_content, filename)

    grid = normalize_grid(raw)
    if grid.empty:
        raise DecodeError("The uploaded file contains no data.")

    log.info("Decoded %s into %d rows x %d columns", filename, grid.shape[0], grid.shape[1])
    return grid
