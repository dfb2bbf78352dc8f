"""
Plain-text extraction for uploaded files.

Only text formats are handled here; binary office documents and images are
reported as unsupported.
"""

import csv
import io
from pathlib import PurePath
from typing import Optional

import chardet

TEXT_EXTENSIONS = {".txt", ".md", ".markdown", ".csv"}
FALLBACK_ENCODINGS = ["utf-8", "latin-1", "cp1252"]
ENCODING_SAMPLE_SIZE = 64 * 1024
MAX_CSV_ROWS = 10000


class UnsupportedFileType(ValueError):
    """The file is not a text format this pipeline can extract."""


def get_extraction_method(filename: str, mime_type: Optional[str]) -> str:
    """
    Pick the extractor for a file.

    Raises:
        UnsupportedFileType: For anything that is not text
    """
    mime_type = (mime_type or "").split(";")[0].strip().lower()
    extension = PurePath(filename or "").suffix.lower()

    if mime_type == "text/csv" or extension == ".csv":
        return "csv"
    if mime_type.startswith("text/") or extension in TEXT_EXTENSIONS:
        return "text_file"
    raise UnsupportedFileType(f"Mime type not supported: {mime_type or extension}")


def detect_encoding(data: bytes) -> str:
    """
    Detect the character encoding of raw bytes.

    Low-confidence guesses fall back to the first common encoding that
    decodes the sample cleanly.
    """
    sample = data[:ENCODING_SAMPLE_SIZE]
    if not sample:
        return "utf-8"

    result = chardet.detect(sample)
    encoding = result.get("encoding")
    confidence = result.get("confidence") or 0

    if not encoding or confidence < 0.7:
        for candidate in FALLBACK_ENCODINGS:
            try:
                sample.decode(candidate)
                return candidate
            except UnicodeDecodeError:
                continue
        return "utf-8"

    return encoding


def decode_text(data: bytes) -> str:
    encoding = detect_encoding(data)
    try:
        return data.decode(encoding, errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")


def _extract_csv_text(text: str) -> str:
    """Render CSV rows as ``a | b | c`` lines."""
    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t|")
        delimiter = dialect.delimiter
    except csv.Error:
        delimiter = ","

    lines = []
    for row_idx, row in enumerate(csv.reader(io.StringIO(text), delimiter=delimiter)):
        if row_idx >= MAX_CSV_ROWS:
            break
        cells = [cell.strip() for cell in row if cell.strip()]
        if cells:
            lines.append(" | ".join(cells))
    return "\n".join(lines)


def extract_text(filename: str, mime_type: Optional[str], data: bytes) -> str:
    """
    Extract searchable text from an uploaded file.

    Raises:
        UnsupportedFileType: If the file is not a supported text format
    """
    method = get_extraction_method(filename, mime_type)
    text = decode_text(data).replace("\x00", "")

    if method == "csv":
        return _extract_csv_text(text)
    return text
