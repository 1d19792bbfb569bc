"""US-style date and time rendering helpers"""

from datetime import datetime


def _meridiem(moment: datetime) -> str:
    return "AM" if moment.hour < 12 else "PM"


def _hour12(moment: datetime) -> int:
    return moment.hour % 12 or 12


def us_date(moment: datetime, include_seconds: bool = False) -> str:
    """
    Format as ``MM/DD/YYYY, hh:mm AM``.

    Args:
        moment: Datetime to format
        include_seconds: Append seconds to the time part

    Example:
        us_date(datetime(2023, 1, 1, 12, 0))        # "01/01/2023, 12:00 PM"
        us_date(datetime(2023, 1, 1, 9, 5, 7), True)  # "01/01/2023, 09:05:07 AM"
    """
    time_part = f"{_hour12(moment):02d}:{moment.minute:02d}"
    if include_seconds:
        time_part += f":{moment.second:02d}"
    return f"{moment.month:02d}/{moment.day:02d}/{moment.year}, {time_part} {_meridiem(moment)}"


def us_time(moment: datetime, include_seconds: bool = False) -> str:
    """
    Format as ``h:mm AM`` (hour without leading zero).

    Example:
        us_time(datetime(2023, 1, 1, 9, 5))           # "9:05 AM"
        us_time(datetime(2023, 1, 1, 21, 5, 7), True)  # "9:05:07 PM"
    """
    time_part = f"{_hour12(moment)}:{moment.minute:02d}"
    if include_seconds:
        time_part += f":{moment.second:02d}"
    return f"{time_part} {_meridiem(moment)}"
