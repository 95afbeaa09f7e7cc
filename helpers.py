import math
import re
from datetime import date, datetime


# Arabic currency symbols; other currencies fall back to the ISO code
ARABIC_CURRENCY_SYMBOLS = {
    'EGP': 'ج.م.',
    'SAR': 'ر.س.',
    'AED': 'د.إ.',
    'USD': 'US$',
    'EUR': '€',
}

ARABIC_INDIC_DIGITS = str.maketrans('0123456789', '٠١٢٣٤٥٦٧٨٩')

# English grouping without decimals, e.g. "10,000" or "1,234,567"
GROUPED_AMOUNT = re.compile(r'^[+-]?[1-9]\d{0,2}(,\d{3})+$')

# Number of selectable report years, counting back from the current year
YEAR_CHOICES_SPAN = 26


def format_currency(value, language='en', currency='EGP'):
    """
    Format a number as a currency string for the given language.

    English: 'EGP 1,234.56'. Arabic: '١٬٢٣٤٫٥٦ ج.م.' (Arabic-Indic digits,
    Arabic separators, symbol after the amount).
    """
    if value is None:
        value = 0.0
    sign = '-' if value < 0 else ''
    grouped = f'{abs(value):,.2f}'

    if language == 'ar':
        number = grouped.replace(',', '٬').replace('.', '٫').translate(ARABIC_INDIC_DIGITS)
        symbol = ARABIC_CURRENCY_SYMBOLS.get(currency, currency)
        return f'{sign}{number} {symbol}'
    return f'{sign}{currency} {grouped}'


def format_amount(value):
    """Plain two-decimal amount with grouping, e.g. for PDF tables."""
    return f'{(value or 0.0):,.2f}'


def format_date(d, language='en'):
    """Format a date as DD/MM/YYYY (Arabic) or YYYY-MM-DD (English)."""
    if isinstance(d, str):
        d = datetime.strptime(d, '%Y-%m-%d').date()
    if d is None:
        return ''
    if language == 'ar':
        return d.strftime('%d/%m/%Y')
    return d.isoformat()


def parse_date(date_str):
    """Parse a date string from HTML date input (YYYY-MM-DD)."""
    if not date_str:
        return date.today()
    if isinstance(date_str, date):
        return date_str
    return datetime.strptime(str(date_str).strip()[:10], '%Y-%m-%d').date()


def parse_amount(amount_str):
    """
    Parse a monetary amount string, handling both comma and dot decimals.

    Raises ValueError for unparseable and non-finite (nan, inf) amounts.
    """
    if amount_str is None or amount_str == '':
        return 0.0
    if isinstance(amount_str, (int, float)):
        amount = float(amount_str)
    else:
        amount_str = str(amount_str).strip().replace(' ', '')
        # '1.234,56' -> '1234.56'; '1,234.56' -> '1234.56'; '10,000' -> '10000'; '12,5' -> '12.5'
        if ',' in amount_str and '.' in amount_str:
            if amount_str.rfind(',') > amount_str.rfind('.'):
                amount_str = amount_str.replace('.', '').replace(',', '.')
            else:
                amount_str = amount_str.replace(',', '')
        elif GROUPED_AMOUNT.match(amount_str):
            amount_str = amount_str.replace(',', '')
        else:
            amount_str = amount_str.replace(',', '.')
        amount = float(amount_str)
    if not math.isfinite(amount):
        raise ValueError(f'Not a finite amount: {amount_str!r}')
    return amount


def parse_int(value, default=0):
    """Parse an integer form value; raises ValueError for fractional input."""
    if value is None or value == '':
        return default
    if isinstance(value, int):
        return value
    number = float(str(value).strip().replace(',', '.'))
    if not number.is_integer():
        raise ValueError(f'Not a whole number: {value!r}')
    return int(number)


def get_year_choices():
    """Return a list of years for report dropdowns, newest first."""
    current_year = date.today().year
    return list(range(current_year, current_year - YEAR_CHOICES_SPAN, -1))
