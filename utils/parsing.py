from datetime import date, datetime, time

from scheduling.errors import ValidationError


def parse_date(value, field="date"):
    # Expect ISO format like "2024-01-31"
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD", field=field)


def parse_time(value, field="time"):
    # "9:00", "09:00" and "09:00:00" all name the same slot
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid {field}. Use HH:MM", field=field)


def parse_int(value, field):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)


def parse_str(value, field):
    # blank counts as missing
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return value.strip() or None


def parse_body(data):
    # request.get_json(silent=True): None for a missing or malformed body
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
