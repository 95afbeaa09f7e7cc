from datetime import date

import pytest

from helpers import (
    format_amount, format_currency, format_date, get_year_choices,
    parse_amount, parse_date, parse_int,
)
from i18n import (
    TRANSLATIONS, current_language, get_translator, is_rtl,
    normalize_language, translate,
)


class TestFormatting:
    def test_english_currency(self):
        assert format_currency(1234.56) == 'EGP 1,234.56'
        assert format_currency(-1234.5, currency='USD') == '-USD 1,234.50'
        assert format_currency(None) == 'EGP 0.00'

    def test_arabic_currency(self):
        assert format_currency(1234.56, 'ar') == '١٬٢٣٤٫٥٦ ج.م.'
        assert format_currency(5, 'ar', 'GBP') == '٥٫٠٠ GBP'

    def test_amount(self):
        assert format_amount(9000) == '9,000.00'
        assert format_amount(None) == '0.00'

    def test_date(self):
        assert format_date(date(2024, 3, 9)) == '2024-03-09'
        assert format_date(date(2024, 3, 9), 'ar') == '09/03/2024'
        assert format_date('2024-03-09', 'ar') == '09/03/2024'
        assert format_date(None) == ''


class TestParsing:
    @pytest.mark.parametrize('raw,expected', [
        ('1.234,56', 1234.56),
        ('1,234.56', 1234.56),
        ('12,5', 12.5),
        ('0,500', 0.5),
        ('10,000', 10000.0),
        ('1,234,567', 1234567.0),
        ('-2,500', -2500.0),
        (' 99 ', 99.0),
        ('', 0.0),
        (None, 0.0),
        (750, 750.0),
    ])
    def test_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize('raw', ['nan', 'inf', '-inf', float('nan'), float('inf')])
    def test_non_finite_amount_raises(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)

    def test_int(self):
        assert parse_int('5') == 5
        assert parse_int('5.0') == 5
        assert parse_int('') == 0
        assert parse_int(None, default=3) == 3
        with pytest.raises(ValueError):
            parse_int('2.5')

    def test_date(self):
        assert parse_date('2023-07-01') == date(2023, 7, 1)
        assert parse_date('2023-07-01T10:00:00') == date(2023, 7, 1)
        assert parse_date(date(2020, 1, 1)) == date(2020, 1, 1)
        assert parse_date('') == date.today()
        with pytest.raises(ValueError):
            parse_date('01/07/2023')


def test_year_choices_newest_first():
    years = get_year_choices()

    assert years[0] == date.today().year
    assert years == sorted(years, reverse=True)
    assert len(years) == 26


class TestTranslations:
    def test_both_languages_cover_the_same_keys(self):
        assert set(TRANSLATIONS['ar']) == set(TRANSLATIONS['en'])

    def test_lookup_and_placeholders(self):
        assert translate('nav.assets', 'en') == 'Assets'
        assert translate('nav.assets', 'ar') == 'الأصول'
        assert translate('report.total', 'en', 2024) == 'Total depreciation for 2024'

    def test_fallbacks(self):
        assert translate('nav.assets', 'fr') == 'Assets'
        assert translate('no.such.key', 'ar') == 'no.such.key'

    def test_translator(self):
        t = get_translator('en')
        assert t('assets.created', 'Laptop') == 'Asset "Laptop" was created.'

    def test_language_helpers(self):
        assert normalize_language('en-GB') == 'en'
        assert normalize_language('AR') == 'ar'
        assert normalize_language('fr') == 'ar'
        assert normalize_language(None) == 'ar'
        assert is_rtl('ar')
        assert not is_rtl('en')


def test_current_language_prefers_session(app):
    with app.test_request_context('/'):
        assert current_language() == 'en'

        from flask import session
        session['language'] = 'ar'
        assert current_language() == 'ar'

        session['language'] = 'xx'
        assert current_language() == 'en'
