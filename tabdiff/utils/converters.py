"""
Data type conversion utilities.
Single responsibility: convert cell values to comparable text.
"""

import math
from datetime import date, datetime, time
from typing import Any


def cell_to_text(val: Any) -> str:
    """
    Convert a spreadsheet cell value to the string used for matching.

    Args:
        val: Cell value as read by pandas (str, int, float, bool, datetime, None/NaN)

    Returns:
        Text representation, empty string for missing cells

    Examples:
        >>> cell_to_text(None)
        ''
        >>> cell_to_text(42.0)
        '42'
        >>> cell_to_text(True)
        'true'
    """
    if val is None:
        return ""

    if isinstance(val, str):
        return val

    if isinstance(val, bool):
        return "true" if val else "false"

    if isinstance(val, float):
        if math.isnan(val):
            return ""
        # Spreadsheet integers are frequently stored as floats
        if val.is_integer():
            return str(int(val))
        return repr(val)

    # pandas NaT and other missing markers compare unequal to themselves
    try:
        if val != val:
            return ""
    except (TypeError, ValueError):
        pass

    if isinstance(val, datetime):
        if val.hour == val.minute == val.second == val.microsecond == 0:
            return val.date().isoformat()
        return val.isoformat(sep=" ")

    if isinstance(val, (date, time)):
        return val.isoformat()

    return str(val)
