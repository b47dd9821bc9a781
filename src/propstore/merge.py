"""Flat merge of property tables.

Tables are merged in order, later values overriding earlier ones. Keys and values
are coerced to strings; None values are skipped so partial mappings leave
earlier values in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def coerce_table(mapping: Mapping[Any, Any]) -> dict[str, str]:
    """Copy a mapping into a str -> str table, dropping None values."""
    return {str(key): str(value) for key, value in mapping.items() if value is not None}


def merge_tables(*tables: Mapping[Any, Any]) -> dict[str, str]:
    """Merge multiple tables in order (later overrides earlier).

    Args:
        *tables: Variable number of mappings to merge.

    Returns:
        A single merged table.
    """
    result: dict[str, str] = {}
    for table in tables:
        if table:
            result.update(coerce_table(table))
    return result
