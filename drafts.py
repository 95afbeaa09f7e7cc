"""
Asset drafts: the edit buffer behind the asset form.

A draft starts either from the empty default template or as a clone of an
existing asset, is changed locally (form input, API payload), and only
touches the database when commit() is called with valid values.
"""

import math
from datetime import date

from depreciation import DEPRECIATION_METHODS, STRAIGHT_LINE, compute_schedule
from helpers import parse_amount, parse_date, parse_int
from models import Asset

# Fields copied between a draft and an Asset row
ASSET_FIELDS = (
    'name', 'description', 'purchase_date', 'cost', 'salvage_value',
    'useful_life', 'depreciation_method', 'notes',
)


def _text(value):
    """Stripped text from a form or JSON value; non-text values are rejected."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValueError(f'Expected text, got {type(value).__name__}')
    return value.strip()


class DraftValidationError(ValueError):
    """Raised by AssetDraft.commit(); errors holds translation keys."""

    def __init__(self, errors):
        super().__init__(', '.join(errors))
        self.errors = errors


class AssetDraft:
    """Uncommitted asset values."""

    def __init__(self, name='', description=None, purchase_date=None, cost=0.0,
                 salvage_value=0.0, useful_life=0, depreciation_method=STRAIGHT_LINE,
                 notes=None, source_id=None):
        self.name = name
        self.description = description
        self.purchase_date = purchase_date
        self.cost = cost
        self.salvage_value = salvage_value
        self.useful_life = useful_life
        self.depreciation_method = depreciation_method
        self.notes = notes
        self.source_id = source_id

    @classmethod
    def from_template(cls, today=None):
        """Empty draft for a new asset, purchased today."""
        return cls(purchase_date=today or date.today())

    @classmethod
    def from_asset(cls, asset):
        """Draft pre-populated from an existing asset."""
        values = {field: getattr(asset, field) for field in ASSET_FIELDS}
        return cls(source_id=asset.id, **values)

    @property
    def is_new(self):
        return self.source_id is None

    def update(self, **fields):
        for field, value in fields.items():
            if field not in ASSET_FIELDS:
                raise AttributeError(f'Unknown asset field: {field}')
            setattr(self, field, value)
        return self

    def update_from_form(self, form):
        """
        Apply submitted form or JSON values. Only keys present are changed.

        Raises ValueError for unparseable numbers or dates and for non-text
        values in text fields.
        """
        if 'name' in form:
            self.name = _text(form.get('name'))
        for field in ('description', 'notes'):
            if field in form:
                setattr(self, field, _text(form.get(field)) or None)
        if 'purchase_date' in form:
            self.purchase_date = parse_date(form.get('purchase_date')) if form.get('purchase_date') else None
        if 'cost' in form:
            self.cost = parse_amount(form.get('cost'))
        if 'salvage_value' in form:
            self.salvage_value = parse_amount(form.get('salvage_value'))
        if 'useful_life' in form:
            self.useful_life = parse_int(form.get('useful_life'))
        if 'depreciation_method' in form:
            self.depreciation_method = _text(form.get('depreciation_method')) or STRAIGHT_LINE
        return self

    def validate(self):
        """Return a list of translation keys for every problem found."""
        errors = []
        if not (self.name or '').strip():
            errors.append('validation.nameRequired')
        if self.purchase_date is None:
            errors.append('validation.dateRequired')
        if not self._amounts_finite():
            errors.append('validation.amountNotFinite')
        else:
            if self.cost is None or self.cost <= 0:
                errors.append('validation.costPositive')
            if self.salvage_value is not None and self.salvage_value < 0:
                errors.append('validation.salvageNegative')
            elif self.cost and self.salvage_value and self.salvage_value > self.cost:
                errors.append('validation.salvageAboveCost')
        if not isinstance(self.useful_life, int) or isinstance(self.useful_life, bool) \
                or self.useful_life < 1:
            errors.append('validation.lifeInvalid')
        if self.depreciation_method not in DEPRECIATION_METHODS:
            errors.append('validation.methodInvalid')
        return errors

    def preview_schedule(self):
        """Schedule for the current (uncommitted) values."""
        if self.purchase_date is None or self.depreciation_method not in DEPRECIATION_METHODS \
                or not self._amounts_finite():
            return []
        return compute_schedule(self)

    def _amounts_finite(self):
        return all(value is None or math.isfinite(value)
                   for value in (self.cost, self.salvage_value))

    def values(self):
        return {field: getattr(self, field) for field in ASSET_FIELDS}

    def commit(self, repo):
        """
        Persist the draft through an AssetRepository.

        Inserts a new asset for template drafts, updates the source asset for
        cloned drafts. Returns the Asset row.
        """
        errors = self.validate()
        if errors:
            raise DraftValidationError(errors)

        if self.is_new:
            asset = repo.add(Asset(**self.values()))
            self.source_id = asset.id
            return asset

        asset = repo.get(self.source_id)
        if asset is None:
            raise LookupError(f'Asset {self.source_id} no longer exists')
        return repo.update(asset, **self.values())
