"""
country.py — Destination region lookup backed by `phonenumbers`.

Used by SmsFactory to apply `by_country` routing rules. The lookup is an
optional capability: the factory works without it (country rules simply
never match), and any exception raised here is absorbed by the factory.

Numbers must be in international form ("+20 12 3456 7890"); without a
leading '+' phonenumbers cannot infer the region and raises
NumberParseException.
"""

from __future__ import annotations

import logging
from typing import Optional

import phonenumbers

logger = logging.getLogger(__name__)

# phonenumbers' code for "no single region" (e.g. non-geographic numbers)
UNKNOWN_REGION = "ZZ"


def region_for_number(phone: str) -> Optional[str]:
    """
    Return the ISO alpha-2 region of an international phone number.

    Returns None when the number parses but maps to no region.

    Raises
    ------
    phonenumbers.NumberParseException
        If the string cannot be parsed as a phone number.
    """
    parsed = phonenumbers.parse(phone, None)
    region = phonenumbers.region_code_for_number(parsed)
    if not region or region == UNKNOWN_REGION:
        return None
    return region.upper()
