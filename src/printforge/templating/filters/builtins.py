"""Built-in filters for template expressions.

This module registers the baseline filter set with a FilterRegistry.
FilterRegistry.create_default() calls register_all_builtins() for you.

Categories:
- Number: currency, number, format
- Text: upper, lower, trim, truncate
- Lookup: currencySymbol

Filters never raise for unexpected input: number filters return null
for non-numeric input, text filters return the input unchanged.
Numeric rounding is half-up; locale data comes from Babel.
"""

import logging
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext

from babel import Locale
from babel.dates import format_datetime
from babel.numbers import format_decimal, parse_pattern

from printforge.templating.filters.registry import (
    FilterArguments,
    FilterCategory,
    FilterDefinition,
    FilterRegistry,
)
from printforge.templating.values import (
    NULL,
    ArrayValue,
    NumberValue,
    ObjectValue,
    StringValue,
    TemplateValue,
    to_text,
)

logger = logging.getLogger(__name__)

MAX_NUMBER_DECIMALS = 20
DEFAULT_TRUNCATE_LENGTH = 50
MAX_TRUNCATE_LENGTH = 10000
DEFAULT_TRUNCATE_SUFFIX = "..."
MAX_SUFFIX_LENGTH = 100
MAX_FORMAT_LENGTH = 100


def register_all_builtins(registry: FilterRegistry) -> None:
    """Register all built-in filters with the given registry."""
    _register_number_filters(registry)
    _register_text_filters(registry)
    _register_lookup_filters(registry)


# -----------------------------------------------------------------------------
# Argument helpers
# -----------------------------------------------------------------------------


def _parse_int(value: TemplateValue | None) -> int | None:
    if isinstance(value, NumberValue):
        return int(value.value)
    if isinstance(value, StringValue):
        try:
            return int(value.value.strip())
        except ValueError:
            return None
    return None


def _int_argument(value: TemplateValue | None, default: int, low: int, high: int) -> int:
    """Read an integer argument, falling back to default and clamping to [low, high]."""
    result = _parse_int(value)
    if result is None:
        result = default
    return max(low, min(high, result))


def _round_half_up(value: Decimal, places: int) -> Decimal:
    """Round to a fixed number of decimal places, halves away from zero."""
    context = Context(prec=max(28, value.adjusted() + places + 2), rounding=ROUND_HALF_UP)
    result = value.quantize(Decimal(1).scaleb(-places), context=context)
    # -0.001 rounds to -0.00; print it as 0.00
    return result.copy_abs() if result.is_zero() else result


def _format_decimal(value: Decimal, pattern: str, places: int, locale: Locale) -> str:
    """Round half-up and format with Babel, with enough precision for any finite value."""
    rounded = _round_half_up(value, places)
    # Babel quantizes again under the current context; 28 digits is not enough past 1e26
    with localcontext() as context:
        context.prec = max(context.prec, rounded.adjusted() + places + 6)
        return format_decimal(rounded, format=pattern, locale=locale)


# -----------------------------------------------------------------------------
# Number Filters
# -----------------------------------------------------------------------------

# .NET-style standard format specifiers; only N2 (grouped), F2 (fixed) and
# P1 (percent) are supported
_SHORTHAND_FORMAT = re.compile(r"([A-Za-z])(\d{0,2})")

# Quoted literals in a CLDR number pattern
_QUOTED_LITERAL = re.compile(r"'[^']*'")


def _currency(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    """Format a number with grouping and two decimals."""
    if not isinstance(value, NumberValue):
        return NULL
    return StringValue(_format_decimal(value.value, "#,##0.00", 2, locale))


def _number(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    """Format a number in fixed point with N decimals and no grouping."""
    if not isinstance(value, NumberValue):
        return NULL
    decimals = _int_argument(args.positional, 0, 0, MAX_NUMBER_DECIMALS)
    pattern = "0." + "0" * decimals if decimals else "0"
    return StringValue(_format_decimal(value.value, pattern, decimals, locale))


def _expand_number_format(spec: str) -> str | None:
    """Turn a shorthand into a CLDR pattern; None if spec is not a number format."""
    match = _SHORTHAND_FORMAT.fullmatch(spec)
    if not match:
        unquoted = _QUOTED_LITERAL.sub("", spec)
        # Letters (other than the exponent E) belong to date patterns
        if re.search(r"[A-DF-Za-z]", unquoted) or not re.search(r"[0#]", unquoted):
            return None
        return spec
    kind = match.group(1).upper()
    if kind not in "NFP":
        return None
    digits = int(match.group(2)) if match.group(2) else 2
    fraction = "." + "0" * digits if digits else ""
    if kind == "N":
        return "#,##0" + fraction
    if kind == "F":
        return "0" + fraction
    return "#,##0" + fraction + "%"


def _format_number(value: Decimal, spec: str, locale: Locale) -> str | None:
    pattern = _expand_number_format(spec)
    if pattern is None:
        logger.debug("Unsupported number format %r", spec)
        return None
    try:
        places = parse_pattern(pattern).frac_prec[1]
    except ValueError:
        logger.debug("Ignoring invalid number format %r", spec)
        return None

    if "%" in pattern:
        places += 2
    elif "‰" in pattern:
        places += 3
    return _format_decimal(value, pattern, places, locale)


def _format_date(text: str, spec: str, locale: Locale) -> str | None:
    try:
        moment = datetime.fromisoformat(text.strip())
    except ValueError:
        return None

    try:
        return format_datetime(moment, format=spec, tzinfo=None, locale=locale)
    except (KeyError, ValueError):
        logger.debug("Ignoring invalid date format %r", spec)
        return None


def _format(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    """Apply a format string to a number or an ISO date string."""
    if not isinstance(args.positional, StringValue) or not args.positional.value:
        return value
    spec = args.positional.value[:MAX_FORMAT_LENGTH]

    result = None
    if isinstance(value, NumberValue):
        result = _format_number(value.value, spec, locale)
    elif isinstance(value, StringValue):
        result = _format_date(value.value, spec, locale)

    if result is None:
        return value
    return StringValue(result)


def _register_number_filters(registry: FilterRegistry) -> None:
    registry.register(
        FilterDefinition(
            name="currency",
            description="Formats a number with thousands grouping and two decimals",
            category=FilterCategory.NUMBER,
            examples=[
                "price * quantity | currency",
                "total | currency",
            ],
            implementation=_currency,
        )
    )

    registry.register(
        FilterDefinition(
            name="number",
            description="Formats a number in fixed point with N decimals (default 0, max 20)",
            category=FilterCategory.NUMBER,
            examples=[
                "weight | number:3",
                "count | number",
            ],
            implementation=_number,
        )
    )

    registry.register(
        FilterDefinition(
            name="format",
            description=(
                "Applies a format to a number (N2, F1, P0 or a pattern such as "
                "'#,##0.###') or to an ISO date string (e.g. 'dd.MM.yyyy')"
            ),
            category=FilterCategory.NUMBER,
            examples=[
                "amount | format:N2",
                "rate | format:P1",
                "createdAt | format:'dd.MM.yyyy HH:mm'",
            ],
            implementation=_format,
        )
    )


# -----------------------------------------------------------------------------
# Text Filters
# -----------------------------------------------------------------------------


def _upper(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    if isinstance(value, StringValue):
        return StringValue(value.value.upper())
    return value


def _lower(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    if isinstance(value, StringValue):
        return StringValue(value.value.lower())
    return value


def _trim(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    if isinstance(value, StringValue):
        return StringValue(value.value.strip())
    return value


def _truncate(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    """Shorten text to a maximum length, marking the cut with a suffix.

    The length comes from "length:", then the positional argument, then
    the default; values that are not integers are skipped. With the
    fromEnd flag the tail of the text is kept instead of the head.
    """
    if isinstance(value, (ArrayValue, ObjectValue)):
        return value

    text = to_text(value)
    length = _parse_int(args.get_named("length"))
    if length is None:
        length = _parse_int(args.positional)
    if length is None:
        length = DEFAULT_TRUNCATE_LENGTH
    length = max(0, min(MAX_TRUNCATE_LENGTH, length))
    suffix_value = args.get_named("suffix")
    suffix = DEFAULT_TRUNCATE_SUFFIX if suffix_value is None else to_text(suffix_value)
    suffix = suffix[:MAX_SUFFIX_LENGTH]

    if len(text) <= length:
        return StringValue(text)
    if length <= len(suffix):
        return StringValue(suffix[:length])

    keep = length - len(suffix)
    if args.has_flag("fromEnd"):
        return StringValue(suffix + text[-keep:])
    return StringValue(text[:keep] + suffix)


def _register_text_filters(registry: FilterRegistry) -> None:
    registry.register(
        FilterDefinition(
            name="upper",
            description="Converts text to uppercase",
            category=FilterCategory.TEXT,
            examples=["name | upper"],
            implementation=_upper,
        )
    )

    registry.register(
        FilterDefinition(
            name="lower",
            description="Converts text to lowercase",
            category=FilterCategory.TEXT,
            examples=["email | lower"],
            implementation=_lower,
        )
    )

    registry.register(
        FilterDefinition(
            name="trim",
            description="Removes leading and trailing whitespace",
            category=FilterCategory.TEXT,
            examples=["name | trim | upper"],
            implementation=_trim,
        )
    )

    registry.register(
        FilterDefinition(
            name="truncate",
            description=(
                "Shortens text to a maximum length (default 50). "
                "Options: length:N, suffix:'...', fromEnd"
            ),
            category=FilterCategory.TEXT,
            examples=[
                "description | truncate:30",
                "sku | truncate:8 fromEnd",
                "title | truncate length:20 suffix:'~'",
            ],
            implementation=_truncate,
        )
    )


# -----------------------------------------------------------------------------
# Lookup Filters
# -----------------------------------------------------------------------------

# (ISO 4217 alpha code, numeric code, symbol)
_CURRENCIES = [
    ("USD", 840, "$"),
    ("EUR", 978, "€"),
    ("GBP", 826, "£"),
    ("JPY", 392, "¥"),
    ("CNY", 156, "¥"),
    ("CHF", 756, "CHF"),
    # CIS and Eastern Europe
    ("RUB", 643, "₽"),
    ("RUR", 810, "₽"),
    ("UAH", 980, "₴"),
    ("KZT", 398, "₸"),
    ("BYN", 933, "Br"),
    ("GEL", 981, "₾"),
    ("AMD", 51, "֏"),
    ("AZN", 944, "₼"),
    ("UZS", 860, "сўм"),
    ("KGS", 417, "сом"),
    ("TJS", 972, "SM"),
    ("MDL", 498, "L"),
    ("TMT", 934, "T"),
    # Europe
    ("PLN", 985, "zł"),
    ("CZK", 203, "Kč"),
    ("HUF", 348, "Ft"),
    ("RON", 946, "lei"),
    ("BGN", 975, "лв"),
    ("HRK", 191, "kn"),
    ("RSD", 941, "din."),
    ("SEK", 752, "kr"),
    ("NOK", 578, "kr"),
    ("DKK", 208, "kr"),
    ("ISK", 352, "kr"),
    # Americas
    ("CAD", 124, "C$"),
    ("BRL", 986, "R$"),
    ("MXN", 484, "MX$"),
    ("ARS", 32, "AR$"),
    ("CLP", 152, "CL$"),
    ("COP", 170, "COL$"),
    ("PEN", 604, "S/"),
    # Asia-Pacific
    ("INR", 356, "₹"),
    ("KRW", 410, "₩"),
    ("TWD", 901, "NT$"),
    ("THB", 764, "฿"),
    ("VND", 704, "₫"),
    ("PHP", 608, "₱"),
    ("MYR", 458, "RM"),
    ("SGD", 702, "S$"),
    ("IDR", 360, "Rp"),
    ("HKD", 344, "HK$"),
    ("AUD", 36, "A$"),
    ("NZD", 554, "NZ$"),
    # Middle East and Africa
    ("TRY", 949, "₺"),
    ("ILS", 376, "₪"),
    ("SAR", 682, "﷼"),
    ("AED", 784, "د.إ"),
    ("QAR", 634, "﷼"),
    ("EGP", 818, "E£"),
    ("ZAR", 710, "R"),
    ("NGN", 566, "₦"),
    ("KES", 404, "KSh"),
]

SYMBOLS_BY_CODE = {alpha: symbol for alpha, _, symbol in _CURRENCIES}
SYMBOLS_BY_NUMBER = {number: symbol for _, number, symbol in _CURRENCIES}


def _currency_symbol(value: TemplateValue, args: FilterArguments, locale: Locale) -> TemplateValue:
    """Map an ISO 4217 code ("USD" or 840) to its symbol."""
    symbol = None
    if isinstance(value, StringValue):
        code = value.value.strip().upper()
        if code.isdigit():
            symbol = SYMBOLS_BY_NUMBER.get(int(code))
        else:
            symbol = SYMBOLS_BY_CODE.get(code)
    elif isinstance(value, NumberValue) and value.value == value.value.to_integral_value():
        symbol = SYMBOLS_BY_NUMBER.get(int(value.value))

    if symbol is None:
        return value
    return StringValue(symbol)


def _register_lookup_filters(registry: FilterRegistry) -> None:
    registry.register(
        FilterDefinition(
            name="currencySymbol",
            description="Converts an ISO 4217 currency code (alphabetic or numeric) to its symbol",
            category=FilterCategory.LOOKUP,
            examples=[
                "currencyCode | currencySymbol",
                "'840' | currencySymbol",
            ],
            implementation=_currency_symbol,
        )
    )
