from datetime import date
from itertools import product
from types import SimpleNamespace

import pytest

from depreciation import (
    DOUBLE_DECLINING, STRAIGHT_LINE, AssetSpec,
    annual_depreciation_report, compute_schedule, get_book_value,
    get_depreciation_for_year, get_schedule_entry,
)


def spec(cost=10000.0, salvage=1000.0, life=5, purchased=date(2023, 1, 15), method=STRAIGHT_LINE):
    return AssetSpec(cost, salvage, life, purchased, method)


class TestStraightLine:
    def test_january_purchase_end_to_end(self):
        schedule = compute_schedule(spec(purchased='2023-01-15'))

        assert [e['year'] for e in schedule] == [2023, 2024, 2025, 2026, 2027]
        assert [e['depreciation'] for e in schedule] == pytest.approx([1800] * 5)
        assert [e['book_value'] for e in schedule] == pytest.approx([8200, 6400, 4600, 2800, 1000])
        assert schedule[-1]['accumulated_depreciation'] == pytest.approx(9000)

    def test_full_exhaustion_for_uneven_split(self):
        schedule = compute_schedule(spec(cost=10000.0, salvage=0.0, life=3, purchased=date(2020, 1, 1)))

        assert len(schedule) == 3
        for entry in schedule:
            assert entry['depreciation'] == pytest.approx(10000 / 3)
        assert schedule[-1]['accumulated_depreciation'] == pytest.approx(10000)
        assert schedule[-1]['book_value'] == pytest.approx(0, abs=1e-9)

    def test_july_purchase_prorates_first_year_only(self):
        schedule = compute_schedule(spec(cost=12000.0, salvage=0.0, life=5, purchased=date(2023, 7, 10)))

        assert schedule[0]['depreciation'] == pytest.approx(1200)
        assert [e['depreciation'] for e in schedule[1:]] == pytest.approx([2400] * 4)

    def test_prorated_schedule_leaves_value_when_life_elapses(self):
        schedule = compute_schedule(spec(cost=12000.0, salvage=0.0, life=5, purchased=date(2023, 7, 10)))

        assert len(schedule) == 5
        assert schedule[-1]['year'] == 2027
        assert schedule[-1]['book_value'] == pytest.approx(1200)

    def test_december_purchase_gets_one_month(self):
        schedule = compute_schedule(spec(cost=1200.0, salvage=0.0, life=1, purchased=date(2023, 12, 31)))

        assert len(schedule) == 1
        assert schedule[0]['depreciation'] == pytest.approx(100)

    def test_salvage_equal_to_cost(self):
        schedule = compute_schedule(spec(cost=5000.0, salvage=5000.0))

        assert len(schedule) == 1
        assert schedule[0]['depreciation'] == 0
        assert schedule[0]['book_value'] == 5000


class TestDoubleDeclining:
    def test_clamps_final_year_to_salvage(self):
        schedule = compute_schedule(spec(method=DOUBLE_DECLINING, purchased=date(2023, 1, 1)))

        assert [e['depreciation'] for e in schedule] == pytest.approx([4000, 2400, 1440, 864, 296])
        assert len(schedule) == 5
        assert schedule[-1]['book_value'] == 1000

    def test_each_unclamped_year_is_two_fifths_of_prior_book_value(self):
        schedule = compute_schedule(spec(method=DOUBLE_DECLINING, purchased=date(2023, 1, 1)))

        prior = 10000.0
        for entry in schedule[:-1]:
            assert entry['depreciation'] == pytest.approx(prior * 2 / 5)
            prior = entry['book_value']

    def test_stops_early_once_salvage_is_reached(self):
        schedule = compute_schedule(spec(cost=1000.0, salvage=500.0, method=DOUBLE_DECLINING,
                                         purchased=date(2023, 1, 1)))

        assert [e['depreciation'] for e in schedule] == pytest.approx([400, 100])
        assert schedule[-1]['book_value'] == 500

    def test_proration_applies_to_first_year(self):
        schedule = compute_schedule(spec(cost=12000.0, salvage=0.0, life=4, method=DOUBLE_DECLINING,
                                         purchased=date(2023, 10, 5)))

        # 6000 a year scaled to the three months October - December
        assert schedule[0]['depreciation'] == pytest.approx(1500)
        assert schedule[1]['depreciation'] == pytest.approx(5250)
        assert len(schedule) == 4
        assert schedule[-1]['book_value'] == pytest.approx(1312.5)

    def test_single_year_life_writes_down_to_salvage(self):
        schedule = compute_schedule(spec(cost=3000.0, salvage=300.0, life=1, method=DOUBLE_DECLINING))

        assert len(schedule) == 1
        assert schedule[0]['depreciation'] == pytest.approx(2700)
        assert schedule[0]['book_value'] == 300


class TestDegenerateInput:
    @pytest.mark.parametrize('life', [0, -3, None])
    def test_useful_life_below_one_gives_empty_schedule(self, life):
        assert compute_schedule(spec(life=life)) == []

    def test_unknown_method_is_rejected(self):
        with pytest.raises(ValueError):
            compute_schedule(spec(method='sum-of-years'))

    def test_salvage_above_cost_is_computed_as_given(self):
        schedule = compute_schedule(spec(cost=100.0, salvage=200.0))

        assert len(schedule) == 1
        assert schedule[0]['book_value'] == 200

    def test_string_and_date_purchase_dates_agree(self):
        assert compute_schedule(spec(purchased='2021-04-30')) == \
            compute_schedule(spec(purchased=date(2021, 4, 30)))

    def test_each_call_returns_a_fresh_schedule(self):
        asset = spec()
        first = compute_schedule(asset)
        first[0]['depreciation'] = -1
        first.clear()

        assert compute_schedule(asset)[0]['depreciation'] == pytest.approx(1800)


@pytest.mark.parametrize('method,month,life,salvage', list(product(
    [STRAIGHT_LINE, DOUBLE_DECLINING], [1, 4, 7, 12], [1, 3, 8], [0.0, 750.0],
)))
def test_schedule_invariants(method, month, life, salvage):
    asset = spec(cost=9000.0, salvage=salvage, life=life, method=method,
                 purchased=date(2020, month, 1))
    schedule = compute_schedule(asset)

    assert 1 <= len(schedule) <= life
    previous_book, previous_accumulated = asset.cost, 0.0
    for offset, entry in enumerate(schedule):
        assert entry['year'] == 2020 + offset
        assert entry['depreciation'] >= 0
        assert entry['book_value'] >= salvage - 1e-9
        assert entry['book_value'] <= previous_book
        assert entry['accumulated_depreciation'] >= previous_accumulated
        assert entry['book_value'] == pytest.approx(asset.cost - entry['accumulated_depreciation'])
        previous_book = entry['book_value']
        previous_accumulated = entry['accumulated_depreciation']


class TestYearLookups:
    def test_depreciation_for_covered_and_uncovered_years(self):
        asset = spec()

        assert get_depreciation_for_year(asset, 2024) == pytest.approx(1800)
        assert get_depreciation_for_year(asset, 2022) == 0.0
        assert get_depreciation_for_year(asset, 2028) == 0.0

    def test_schedule_entry(self):
        entry = get_schedule_entry(spec(), 2025)

        assert entry['book_value'] == pytest.approx(4600)
        assert get_schedule_entry(spec(), 2030) is None

    def test_book_value_over_time(self):
        asset = spec()

        assert get_book_value(asset, 2022) == 10000
        assert get_book_value(asset, 2023) == pytest.approx(8200)
        assert get_book_value(asset, 2040) == pytest.approx(1000)


class TestAnnualReport:
    def assets(self):
        return [
            SimpleNamespace(id=1, name='Laptop', cost=10000.0, salvage_value=1000.0, useful_life=5,
                            purchase_date=date(2023, 1, 15), depreciation_method=STRAIGHT_LINE),
            SimpleNamespace(id=2, name='Truck', cost=12000.0, salvage_value=0.0, useful_life=5,
                            purchase_date=date(2023, 7, 1), depreciation_method=STRAIGHT_LINE),
            SimpleNamespace(id=3, name='Press', cost=10000.0, salvage_value=1000.0, useful_life=5,
                            purchase_date=date(2022, 1, 3), depreciation_method=DOUBLE_DECLINING),
        ]

    def test_rows_and_total(self):
        report = annual_depreciation_report(self.assets(), 2024)

        assert report['year'] == 2024
        assert [r['name'] for r in report['rows']] == ['Laptop', 'Truck', 'Press']
        assert [r['depreciation'] for r in report['rows']] == pytest.approx([1800, 2400, 1440])
        assert [r['book_value'] for r in report['rows']] == pytest.approx([6400, 8400, 2160])
        assert report['total_depreciation'] == pytest.approx(5640)

    def test_assets_outside_their_schedule_report_zero(self):
        report = annual_depreciation_report(self.assets(), 2030)

        assert all(r['depreciation'] == 0 and r['book_value'] == 0 for r in report['rows'])
        assert report['total_depreciation'] == 0

    def test_empty_register(self):
        assert annual_depreciation_report([], 2024) == {'year': 2024, 'rows': [], 'total_depreciation': 0}
