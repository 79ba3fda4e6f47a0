"""
Address and Contact Normalizers

Heuristic, US-centric address splitting plus phone and email cleanup.
None of these raise: when nothing matches, fields stay empty.

Address layouts handled (comma separated, last segment is the country):
    "1 Main St, Springfield, IL 62704, USA"   street, city, state+zip, country
    "1 Main St, Springfield IL 62704, USA"    street, city+state+zip, country
    "1 Main St, IL 62704, USA"                street, state+zip, country
    "1 Main St, Springfield, USA"             street, city, country
    "1 Main St, Springfield"                  street, city
"""

import re
from typing import Optional

from ..models import Address

_ZIP = r"\d{5}(?:-\d{4})?"
STATE_ZIP_EXACT = re.compile(rf"^([A-Z]{{2}})\s*({_ZIP})?$")
STATE_ZIP_LOOSE = re.compile(rf"([A-Z]{{2}})\s*({_ZIP})")
CITY_STATE_ZIP = re.compile(rf"^(.+?)\s+([A-Z]{{2}})\s*({_ZIP})?$")
EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
PHONE_STRIP = re.compile(r"[^\d+]")


def parse_address(full_address: Optional[str]) -> Address:
    """
    Split a one-line address into parts.

    Args:
        full_address: Address as shown on the place page

    Returns:
        Address with `full` always set to the input (or "" for None)
    """
    if not full_address:
        return Address()

    parts = [p.strip() for p in full_address.split(",")]
    result = Address(full=full_address)

    if len(parts) == 1:
        # Nothing to split
        return result

    result.country = parts[-1]

    if len(parts) >= 4:
        result.street = parts[0]
        result.city = parts[1]

        state_zip = parts[-2]
        match = STATE_ZIP_EXACT.match(state_zip)
        if match:
            result.state = match.group(1)
            result.zip_code = match.group(2) or ""
        else:
            loose = STATE_ZIP_LOOSE.search(state_zip)
            if loose:
                result.state = loose.group(1)
                result.zip_code = loose.group(2)

    elif len(parts) == 3:
        result.street = parts[0]

        second = parts[1]
        match = CITY_STATE_ZIP.match(second)
        if match:
            result.city = match.group(1).strip()
            result.state = match.group(2)
            result.zip_code = match.group(3) or ""
        else:
            just_state_zip = STATE_ZIP_EXACT.match(second)
            if just_state_zip:
                result.state = just_state_zip.group(1)
                result.zip_code = just_state_zip.group(2) or ""
            else:
                result.city = second

    elif len(parts) == 2:
        result.street = parts[0]
        result.city = parts[1]

    return result


def format_phone_number(phone: Optional[str]) -> str:
    """Keep digits and a leading '+' only: "+1 (555) 123-4567" -> "+15551234567"."""
    if not phone:
        return ""
    cleaned = PHONE_STRIP.sub("", phone)
    # A '+' is only meaningful in front
    if cleaned.startswith("+"):
        return "+" + cleaned[1:].replace("+", "")
    return cleaned.replace("+", "")


def extract_email(text: Optional[str]) -> Optional[str]:
    """First email-looking token in the text, or None."""
    if not text:
        return None
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None
