"""
Version strings have the fixed form "<major>.<minor>".

Only the minor component is ever changed here; the major component is
reserved for schema-breaking migrations handled elsewhere.
"""
import re
from typing import Tuple

from formconfig.core.exceptions import SchemaValidationError

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)$")


def parse_version(version: str) -> Tuple[int, int]:
    match = VERSION_PATTERN.match(version or "")
    if not match:
        raise SchemaValidationError(f"Invalid version '{version}', expected '<major>.<minor>'")
    return int(match.group(1)), int(match.group(2))


def format_version(major: int, minor: int) -> str:
    return f"{major}.{minor}"


def bump_minor(version: str) -> str:
    """'1.2' -> '1.3'"""
    major, minor = parse_version(version)
    return format_version(major, minor + 1)


def drop_minor(version: str) -> str:
    """'1.3' -> '1.2', floored at '<major>.0'."""
    major, minor = parse_version(version)
    return format_version(major, max(minor - 1, 0))
