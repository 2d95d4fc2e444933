"""
Input validators and coercion helpers
"""
import math
import re
from datetime import date, datetime
from wtforms.validators import ValidationError as FieldError
from caportal.exceptions import ValidationError

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_phone(form, field):
    """Indian / international phone number"""
    if field.data:
        if not re.match(r'^\+?[\d\s-]{7,20}$', str(field.data)):
            raise FieldError('Please enter a valid phone number')


def is_valid_email(value):
    return bool(value) and bool(EMAIL_RE.match(value))


def to_amount(value):
    """Parse a monetary input; missing or unparsable values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).replace(',', '').strip())
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def to_date(value, field='date'):
    """Accept a date, datetime or ISO 'YYYY-MM-DD' string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f'{field} is required')
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'Invalid {field}, expected YYYY-MM-DD')


def round_amounts(data, digits=2):
    """Round every float in a (nested) result to two decimals"""
    if isinstance(data, float):
        return round(data, digits)
    if isinstance(data, dict):
        return {k: round_amounts(v, digits) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [round_amounts(v, digits) for v in data]
    return data


def slugify(text):
    """'GST Update: Q1 2025!' -> 'gst-update-q1-2025'"""
    slug = re.sub(r'[^a-z0-9]+', '-', (text or '').lower())
    return slug.strip('-')
