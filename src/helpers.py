from datetime import datetime, date, time, timedelta
from decimal import Decimal, InvalidOperation
from src.exceptions import InvalidInputException

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Column limits: Numeric(10, 2) money and 32-bit INTEGER quantities
MAX_AMOUNT = Decimal("99999999.99")
MAX_QUANTITY = 2147483647

def to_decimal(value, field, allow_none=False):
    """Parse a money amount into a 2-place Decimal"""
    if value is None or value == "":
        if allow_none:
            return None
        raise InvalidInputException(f"{field} is required")
    if isinstance(value, bool):
        raise InvalidInputException(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidInputException(f"{field} must be a number")
        if abs(amount) > MAX_AMOUNT:
            raise InvalidInputException(f"{field} must not exceed {MAX_AMOUNT}")
        return amount.quantize(CENTS)
    except (InvalidOperation, ValueError):
        raise InvalidInputException(f"{field} must be a number")

def to_quantity(value, field="quantity"):
    """Parse a positive whole quantity"""
    if value is None or isinstance(value, bool):
        raise InvalidInputException(f"{field} is required")
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputException(f"{field} must be a whole number")
    if not qty.is_finite() or qty != qty.to_integral_value():
        raise InvalidInputException(f"{field} must be a whole number")
    if qty > MAX_QUANTITY:
        raise InvalidInputException(f"{field} must not exceed {MAX_QUANTITY}")
    qty = int(qty)
    if qty <= 0:
        raise InvalidInputException(f"{field} must be greater than 0")
    return qty

def to_text(value, field):
    """Strip a text field; None counts as empty"""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidInputException(f"{field} must be a string")
    return value.strip()

def parse_date(value, field="date"):
    """Accept a date, datetime, 'YYYY-MM-DD' or ISO datetime string"""
    if value is None or value == "":
        raise InvalidInputException(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        date_str = str(value)
        if 'T' in date_str:
            return datetime.fromisoformat(date_str.replace('Z', '+00:00')).date()
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        raise InvalidInputException(f"{field} must be in YYYY-MM-DD or ISO format")

def serialize_for_json(obj):
    """Convert objects to JSON-serializable format"""
    if obj is None:
        return None
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: serialize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize_for_json(item) for item in obj]
    return obj

def to_id(value, field="id"):
    if value is None or isinstance(value, bool):
        raise InvalidInputException(f"{field} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInputException(f"{field} must be an integer")

def parse_datetime(value, field="date"):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        raise InvalidInputException(f"{field} must be an ISO date or datetime")

def day_bounds(day):
    """Half-open [start, end) datetime range covering one calendar day"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
