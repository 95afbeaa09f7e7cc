"""
Depreciation calculation module for the fixed asset register.

Two methods are supported: straight-line and double-declining balance.
Both prorate the first year by purchase month and never let the book value
fall below the salvage value. Calculation functions are pure and stateless;
they accept any object exposing cost, salvage_value, useful_life,
purchase_date and depreciation_method (an Asset row, an AssetDraft or an
AssetSpec).

Amounts are returned unrounded. Rounding is a presentation concern.
"""

from collections import namedtuple
from datetime import date, datetime


# =============================================================================
# METHOD CONFIGURATION
# =============================================================================

STRAIGHT_LINE = 'straight-line'
DOUBLE_DECLINING = 'double-declining'

# Depreciation method choices for UI (values are translation keys)
DEPRECIATION_METHODS = {
    STRAIGHT_LINE: 'method.straight-line',
    DOUBLE_DECLINING: 'method.double-declining',
}

# Declining-balance multiplier applied to the straight-line rate
DECLINING_FACTOR = 2.0

# Common useful life presets (years)
USEFUL_LIFE_PRESETS = {
    'Computers & IT hardware': 3,
    'Software': 3,
    'Office furniture': 10,
    'Printers & scanners': 5,
    'Phones & tablets': 3,
    'Passenger cars': 5,
    'Trucks & vans': 8,
    'Tools': 5,
    'Machinery': 10,
    'Buildings': 20,
}


# Plain value object for ad-hoc computations (API previews, tests)
AssetSpec = namedtuple('AssetSpec', [
    'cost', 'salvage_value', 'useful_life', 'purchase_date', 'depreciation_method',
])


# =============================================================================
# CALCULATION FUNCTIONS
# =============================================================================

def compute_schedule(asset):
    """
    Generate the yearly depreciation schedule for an asset.

    Returns a list of dicts:
        [{'year': int, 'depreciation': float,
          'accumulated_depreciation': float, 'book_value': float}, ...]

    - Straight-line: (cost - salvage) / life every year
    - Double-declining: 2 * book value / life, from the current book value
    - First year is scaled by the months remaining after the purchase month
    - Depreciation is clamped so book value lands exactly on the salvage value,
      and the schedule stops there (it may be shorter than the useful life)

    A useful life below one year yields an empty schedule.
    """
    useful_life = asset.useful_life or 0
    if useful_life < 1:
        return []

    method = asset.depreciation_method
    if method not in DEPRECIATION_METHODS:
        raise ValueError(f'Unknown depreciation method: {method!r}')

    cost = asset.cost
    salvage = asset.salvage_value or 0
    purchase_year, purchase_month = _purchase_year_month(asset.purchase_date)

    schedule = []
    book_value = cost
    accumulated = 0.0

    for i in range(int(useful_life)):
        if method == STRAIGHT_LINE:
            amount = (cost - salvage) / useful_life
        else:
            amount = book_value * DECLINING_FACTOR / useful_life

        # Mid-year acquisition: only the remaining months of year one count
        if i == 0 and purchase_month > 0:
            amount *= (12 - purchase_month) / 12

        if book_value - amount < salvage:
            amount = book_value - salvage

        book_value -= amount
        accumulated += amount

        schedule.append({
            'year': purchase_year + i,
            'depreciation': amount,
            'accumulated_depreciation': accumulated,
            'book_value': book_value,
        })

        if book_value <= salvage:
            break

    return schedule


def get_schedule_entry(asset, year):
    """Return the schedule entry for a calendar year, or None."""
    for entry in compute_schedule(asset):
        if entry['year'] == year:
            return entry
    return None


def get_depreciation_for_year(asset, year):
    """Return the depreciation amount for a specific year."""
    entry = get_schedule_entry(asset, year)
    return entry['depreciation'] if entry else 0.0


def get_book_value(asset, as_of_year=None):
    """
    Book value at the end of a calendar year (default: current year).

    Before the purchase year the asset still stands at cost; once the
    schedule has ended it stays at the last computed book value.
    """
    if as_of_year is None:
        as_of_year = date.today().year

    book_value = asset.cost
    for entry in compute_schedule(asset):
        if entry['year'] > as_of_year:
            break
        book_value = entry['book_value']
    return book_value


def annual_depreciation_report(assets, year):
    """
    Per-asset depreciation and book value for one calendar year.

    Returns:
        {'year': int, 'rows': [{'asset_id', 'name', 'depreciation',
         'book_value'}, ...], 'total_depreciation': float}

    Assets whose schedule does not cover the year report 0 for both values.
    """
    rows = []
    for asset in assets:
        entry = get_schedule_entry(asset, year)
        rows.append({
            'asset_id': getattr(asset, 'id', None),
            'name': getattr(asset, 'name', ''),
            'depreciation': entry['depreciation'] if entry else 0.0,
            'book_value': entry['book_value'] if entry else 0.0,
        })

    return {
        'year': year,
        'rows': rows,
        'total_depreciation': sum(r['depreciation'] for r in rows),
    }


# =============================================================================
# INTERNAL
# =============================================================================

def _purchase_year_month(purchase_date):
    """Return (year, 0-based month) from a date, datetime or ISO string."""
    if isinstance(purchase_date, str):
        purchase_date = datetime.strptime(purchase_date[:10], '%Y-%m-%d').date()
    return purchase_date.year, purchase_date.month - 1
