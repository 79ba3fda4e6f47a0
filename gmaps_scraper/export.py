"""
Result Export

Writes BusinessRecords to JSON and CSV files, or renders CSV in memory
for the HTTP API.
"""

import csv
import io
import json
import os
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .config import CSV_HEADERS, RESULTS_DIR, RESULTS_FILE_PREFIX
from .models import BusinessRecord

EXPORT_FORMATS = ("json", "csv", "both")


def get_timestamp() -> str:
    """Filesystem-safe local timestamp, e.g. 2024-05-01T14-03-22."""
    return datetime.now().strftime("%Y-%m-%dT%H-%M-%S")


def sanitize_filename(name: str) -> str:
    """Replace characters that are not safe in filenames with underscores."""
    cleaned = re.sub(r"[^\w.-]+", "_", (name or "").strip())
    return cleaned.strip("_") or RESULTS_FILE_PREFIX


def format_opening_hours(entries: Iterable[Dict[str, str]]) -> str:
    parts = []
    for entry in entries or []:
        if "raw" in entry:
            parts.append(entry["raw"])
        else:
            parts.append(f"{entry.get('day', '')}: {entry.get('hours', '')}")
    return "; ".join(parts)


def record_to_row(record: BusinessRecord) -> List:
    """One CSV row, in CSV_HEADERS order."""
    address = record.address
    coords = record.coordinates
    return [
        record.name,
        record.type,
        record.phone,
        record.whatsapp,
        record.email,
        record.website,
        address.full,
        address.street,
        address.city,
        address.state,
        address.zip_code,
        address.country,
        coords.latitude if coords else "",
        coords.longitude if coords else "",
        record.rating if record.rating is not None else "",
        record.reviews_count,
        record.total_reviews,
        record.price_level,
        record.description,
        format_opening_hours(record.opening_hours),
        record.plus_code,
        record.place_id,
        record.google_maps_url,
        record.image_url,
        record.distance_from_center if record.distance_from_center is not None else "",
        "; ".join(record.amenities),
        record.scraped_at,
    ]


def _write_csv(f, records: Iterable[BusinessRecord]):
    writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(record_to_row(record))


def records_to_csv(records: Iterable[BusinessRecord]) -> str:
    """Render records as CSV text (header included)."""
    buffer = io.StringIO(newline="")
    _write_csv(buffer, records)
    return buffer.getvalue()


def records_to_json(records: Iterable[BusinessRecord]) -> str:
    return json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False)


def _output_path(filename: Optional[str], extension: str, results_dir: str) -> str:
    if filename is None:
        filename = f"{RESULTS_FILE_PREFIX}_{get_timestamp()}.{extension}"
    elif not filename.endswith(f".{extension}"):
        filename = f"{filename}.{extension}"

    if os.path.dirname(filename):
        path = filename
    else:
        path = os.path.join(results_dir, filename)

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return path


def export_to_json(records: List[BusinessRecord], filename: str = None, results_dir: str = RESULTS_DIR) -> str:
    """
    Write records to a JSON file.

    Args:
        records: Records to write
        filename: Output name; google_maps_results_<timestamp>.json when None
        results_dir: Directory used when filename has no directory part

    Returns:
        Path of the written file
    """
    path = _output_path(filename, "json", results_dir)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(records_to_json(records))
    return path


def export_to_csv(records: List[BusinessRecord], filename: str = None, results_dir: str = RESULTS_DIR) -> str:
    """
    Write records to a CSV file with the fixed column header.

    Args:
        records: Records to write
        filename: Output name; google_maps_results_<timestamp>.csv when None
        results_dir: Directory used when filename has no directory part

    Returns:
        Path of the written file
    """
    path = _output_path(filename, "csv", results_dir)
    with open(path, 'w', newline='', encoding='utf-8') as f:
        _write_csv(f, records)
    return path


def _strip_export_extension(filename: str) -> str:
    root, extension = os.path.splitext(filename)
    if extension.lower() in (".json", ".csv"):
        return root
    return filename


def export_results(
    records: List[BusinessRecord],
    fmt: str = "both",
    filename: str = None,
    results_dir: str = RESULTS_DIR,
) -> List[str]:
    """
    Export records as json, csv or both.

    Returns:
        Paths of the written files

    Raises:
        ValueError: If fmt is not json, csv or both
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {fmt}")

    # Same base name for both files
    if filename:
        base = sanitize_filename(_strip_export_extension(filename))
    else:
        base = f"{RESULTS_FILE_PREFIX}_{get_timestamp()}"
    paths = []
    if fmt in ("json", "both"):
        paths.append(export_to_json(records, base, results_dir))
    if fmt in ("csv", "both"):
        paths.append(export_to_csv(records, base, results_dir))
    return paths
