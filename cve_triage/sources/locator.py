"""
Content Locator

Maps a CVE identifier to its path in the cvelist repository layout:

    CVE-2021-21432 -> 2021/21xxx/CVE-2021-21432.json
    CVE-2021-123   -> 2021/0xxx/CVE-2021-123.json

The last three digits of the number are replaced by 'x' so one directory
holds a thousand entries, and the bucket is zero-padded to four characters.
"""

import re
from typing import Optional

from .exceptions import MalformedIdentifier

ENTRY_SUFFIX = '.json'

_digits_pattern = re.compile(r'[0-9]+')
_path_pattern = re.compile(r'^([0-9]+)/([0-9]*x{3})/([A-Za-z]+-[0-9]+-[0-9]+)\.json$')


def split_cve_id(cve_id: str):
    """Split an identifier into (prefix, year, number)"""
    parts = cve_id.split('-') if cve_id else []
    if len(parts) != 3:
        raise MalformedIdentifier(
            f"Expected PREFIX-YEAR-NUMBER, got {cve_id!r}", cve_id=cve_id)
    prefix, year, number = parts
    if not prefix or not _digits_pattern.fullmatch(year) or not _digits_pattern.fullmatch(number):
        raise MalformedIdentifier(
            f"Year and number must be ASCII digits in {cve_id!r}", cve_id=cve_id)
    return prefix, year, number


def bucket_for_number(number: str) -> str:
    """Wildcard the last three digits and pad to four characters"""
    bucket = number[:-3] + 'xxx' if len(number) >= 3 else 'xxx'
    return bucket.rjust(4, '0')


def cve_id_to_path(cve_id: str) -> str:
    """Return the canonical path of an entry inside the upstream repository"""
    _, year, number = split_cve_id(cve_id)
    return f"{year}/{bucket_for_number(number)}/{cve_id}{ENTRY_SUFFIX}"


def path_to_cve_id(path: str) -> Optional[str]:
    """Return the identifier stored at path, or None if path is not an entry file"""
    match = _path_pattern.match(path)
    if not match:
        return None
    cve_id = match.group(3)
    # Reject paths that sit in the wrong bucket
    try:
        if cve_id_to_path(cve_id) != path:
            return None
    except MalformedIdentifier:
        return None
    return cve_id
