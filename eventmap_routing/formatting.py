"""
Display helpers. Distances are meters and durations seconds until they reach
this module; every view (list, map, itinerary) goes through these functions
so the units shown are the same everywhere.
"""
import datetime

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084


def format_distance(meters: float) -> str:
    miles = meters / METERS_PER_MILE
    if miles < 0.1:
        return f"{round(meters * FEET_PER_METER)} ft"
    return f"{miles:.1f} mi"


def format_duration(seconds: float) -> str:
    hours = int(seconds // 3600)
    minutes = round((seconds % 3600) / 60)
    if minutes == 60:
        hours += 1
        minutes = 0
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes} min"


def format_date(date_str: str) -> str:
    """'2025-12-25' -> 'December 25, 2025'"""
    if not date_str:
        return ''
    day = datetime.date.fromisoformat(date_str[:10])
    return f"{day.strftime('%B')} {day.day}, {day.year}"
