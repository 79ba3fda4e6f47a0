"""
Opening Hours Parsers

Three sources, from most to least structured:
- "Copy open hours" button labels:   "Monday, 9 AM to 5 PM, Copy open hours"
- Expanded hours section text:       "Monday9 AM–5 PMTuesday9 AM–5 PM..."
- Hours status button label:         "Open · Closes 5 PM · See more hours. Show open hours for the week"
"""

import re
from typing import Any, Dict, List, Optional

from ..config import DAYS_OF_WEEK

TIME_RANGE = r"\d{1,2}(?::\d{2})?(?:\s*[ap]\.?m\.?)?\s*[–-]\s*\d{1,2}(?::\d{2})?(?:\s*[ap]\.?m\.?)?"
STATUS_PATTERN = re.compile(r"(Open|Closes?\s*(?:soon)?|Closed)", re.IGNORECASE)


def _clean(text: str) -> str:
    # Narrow no-break spaces show up between times and AM/PM
    return text.replace("\u202f", " ").replace("\xa0", " ").strip()


def parse_copy_hours_labels(labels: List[str]) -> List[Dict[str, str]]:
    """Turn "Day, open to close" labels into {day, hours} entries, in order."""
    entries = []
    for label in labels or []:
        parts = (label or "").split(",")
        if len(parts) < 2:
            continue
        day_part = parts[0].strip()
        time_part = _clean(parts[1]).replace(" to ", "–")
        day = next((d for d in DAYS_OF_WEEK if d in day_part), day_part)
        entries.append({"day": day, "hours": time_part})
    return entries


def parse_hours_text(text: Optional[str]) -> List[Dict[str, str]]:
    """Find "<Weekday> ... <time range>" for each weekday in section text."""
    if not text:
        return []
    text = _clean(text)
    entries = []
    for day in DAYS_OF_WEEK:
        pattern = re.compile(rf"{day}[^\d]*({TIME_RANGE})", re.IGNORECASE)
        match = pattern.search(text)
        if match:
            entries.append({"day": day, "hours": match.group(1).strip()})
    return entries


def parse_hours_status(label: Optional[str]) -> List[Dict[str, str]]:
    """Single {day: "Current"} entry from an hours status label, if it has one."""
    if not label:
        return []
    if "Open" not in label and "Closes" not in label and "Closed" not in label:
        return []
    if not STATUS_PATTERN.search(label):
        return []
    hours = _clean(label.split("Show")[0].replace("Hours", ""))
    if not hours:
        return []
    return [{"day": "Current", "hours": hours}]


def parse_opening_hours(hours_data: Any) -> List[Any]:
    """Normalize a raw hours list: strings become {"raw": s}, dicts pass through."""
    if not isinstance(hours_data, list):
        return []
    normalized = []
    for entry in hours_data:
        if isinstance(entry, str):
            normalized.append({"raw": entry})
        else:
            normalized.append(entry)
    return normalized
