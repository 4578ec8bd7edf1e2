"""
Currency Precision Module

Handles ISO 4217 currency codes and their minor-unit precision for
validating and formatting amounts. NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from enum import Enum
from typing import Any
import re

# Set global decimal context for financial precision
getcontext().prec = 28  # High precision for financial calculations

# Optional sign, plain or comma-grouped integer part, optional fraction
AMOUNT_PATTERN = re.compile(r'^[+-]?(\d{1,3}(,\d{3})+|\d+)(\.\d+)?$')


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places
    CAD = ("CAD", 2)  # Canadian Dollar, 2 decimal places
    CHF = ("CHF", 2)  # Swiss Franc, 2 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount, e.g. 0.01 for USD"""
        return Decimal('0.1') ** self.precision

    @classmethod
    def from_code(cls, code: str) -> 'Currency':
        """Look up a currency by its ISO code"""
        try:
            return cls[code.upper()]
        except KeyError:
            raise ValueError(f"Unsupported currency: {code}")


def decimal_from_string(value: str) -> Decimal:
    """
    Strictly convert a plain decimal string to Decimal

    Accepts an optional sign, digits with optional well-formed thousands
    groups ("1,000.50") and an optional fraction. Anything else, including
    exponents, currency symbols and stray letters, is rejected.

    Args:
        value: String representation of number

    Returns:
        Decimal value

    Raises:
        ValueError: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = value.strip()
    if not AMOUNT_PATTERN.match(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    try:
        return Decimal(clean_value.replace(',', ''))
    except InvalidOperation:
        raise ValueError(f"Cannot convert '{value}' to Decimal")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce user input (str, int, Decimal) to a finite Decimal

    Floats are converted through their string form so 0.1 stays 0.1.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = decimal_from_string(value)
    else:
        raise ValueError(f"Not a monetary amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def has_valid_precision(value: Decimal, currency: Currency) -> bool:
    """Check that value has no digits below the currency's minor unit"""
    try:
        return value == value.quantize(currency.minor_unit)
    except InvalidOperation:
        # Too many digits to represent at this precision
        return False


def validate_decimal_precision(value: Decimal, currency: Currency) -> Decimal:
    """
    Validate and round decimal to currency precision

    Args:
        value: Decimal to validate
        currency: Currency defining precision

    Returns:
        Properly rounded Decimal
    """
    return value.quantize(currency.minor_unit, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, currency: Currency) -> str:
    """Render an amount at the currency's precision, e.g. '70.00'"""
    return str(validate_decimal_precision(value, currency))
