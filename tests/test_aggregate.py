"""
Unit tests for charts/aggregate.py
"""

from datetime import date, datetime

import pytest

from conftest import build_archive_payload, build_series
from weather_images.charts.aggregate import aggregate_daily, aggregate_grid
from weather_images.errors import NoData, ValidationError


class TestAggregateDaily:
    """Tests for aggregate_daily()."""

    @pytest.mark.unit
    def test_one_record_per_date(self, two_day_series):
        daily = aggregate_daily(two_day_series)
        assert [d.date for d in daily] == [date(2024, 7, 1), date(2024, 7, 2)]

    @pytest.mark.unit
    def test_extrema_and_means(self, two_day_series):
        first, second = aggregate_daily(two_day_series)

        assert first.max_temp == 30.0
        assert first.min_temp == 10.0
        assert second.max_temp == 32.0
        assert second.min_temp == 12.0

        # Hour 3 humidity is missing and excluded from the mean
        humidity = [50 + i for i in range(24) if i != 3]
        assert first.mean_humidity == pytest.approx(sum(humidity) / len(humidity))
        assert second.mean_humidity == pytest.approx(sum(range(74, 98)) / 24)

    @pytest.mark.unit
    def test_precipitation_summed(self, two_day_series):
        first, second = aggregate_daily(two_day_series)
        assert first.precipitation_sum == pytest.approx(1.5)
        assert second.precipitation_sum == pytest.approx(0.25)

    @pytest.mark.unit
    def test_mean_apparent_temperature(self, two_day_series):
        first, _ = aggregate_daily(two_day_series)
        assert first.mean_apparent_temp == pytest.approx(19.0)

    @pytest.mark.unit
    def test_missing_temperature_does_not_null_day(self):
        temperature = [5.0, None, 7.0, 6.0]
        series = build_series(build_archive_payload(datetime(2024, 1, 1), 4, temperature=temperature))
        (day,) = aggregate_daily(series)
        assert day.max_temp == 7.0
        assert day.min_temp == 5.0

    @pytest.mark.unit
    def test_missing_field_only_affects_itself(self):
        series = build_series(build_archive_payload(
            datetime(2024, 1, 1), 2,
            temperature=[None, None],
            humidity=[40.0, 60.0],
        ))
        (day,) = aggregate_daily(series)
        assert day.max_temp is None
        assert day.min_temp is None
        assert day.mean_humidity == 50.0

    @pytest.mark.unit
    def test_all_missing_is_absent_not_zero(self):
        series = build_series(build_archive_payload(datetime(2024, 1, 1), 3))
        (day,) = aggregate_daily(series)
        assert day.max_temp is None
        assert day.mean_humidity is None
        assert day.mean_apparent_temp is None
        assert day.precipitation_sum is None

    @pytest.mark.unit
    def test_nan_treated_as_missing(self):
        series = build_series(build_archive_payload(
            datetime(2024, 1, 1), 3, temperature=[float("nan"), 4.0, 2.0],
        ))
        (day,) = aggregate_daily(series)
        assert day.min_temp == 2.0
        assert day.max_temp == 4.0

    @pytest.mark.unit
    def test_empty_series_raises(self):
        series = build_series(build_archive_payload(datetime(2024, 1, 1), 0))
        with pytest.raises(NoData):
            aggregate_daily(series)


class TestAggregateGrid:
    """Tests for aggregate_grid()."""

    @pytest.mark.unit
    def test_row_per_distinct_date(self, year_series):
        grid = aggregate_grid(year_series)
        assert grid.rows == 3
        assert grid.dates == [date(2023, 1, 1), date(2023, 1, 2), date(2023, 1, 3)]
        assert all(len(row) == 24 for row in grid.cells)

    @pytest.mark.unit
    def test_column_is_hour_of_day(self, year_series):
        grid = aggregate_grid(year_series)
        for row in grid.cells:
            assert row == [float(h) for h in range(24)]

    @pytest.mark.unit
    def test_incomplete_data_not_padded(self):
        # Partial first day (from 20:00) and a partial second day
        series = build_series(build_archive_payload(
            datetime(2023, 6, 1, 20), 10, temperature=[1.0] * 10,
        ))
        grid = aggregate_grid(series)
        assert grid.rows == 2
        assert grid.cells[0][:20] == [None] * 20
        assert grid.cells[0][20:] == [1.0] * 4
        assert grid.cells[1][:6] == [1.0] * 6
        assert grid.cells[1][6:] == [None] * 18

    @pytest.mark.unit
    def test_precipitation_grid(self):
        series = build_series(build_archive_payload(
            datetime(2023, 6, 1), 24, temperature=[20.0] * 24, precipitation=[0.5] * 24,
        ))
        grid = aggregate_grid(series, "precipitation")
        assert grid.metric == "precipitation"
        assert grid.values() == [0.5] * 24

    @pytest.mark.unit
    def test_unknown_field_rejected(self, year_series):
        with pytest.raises(ValidationError):
            aggregate_grid(year_series, "humidity")

    @pytest.mark.unit
    def test_empty_series_raises(self):
        series = build_series(build_archive_payload(datetime(2024, 1, 1), 0))
        with pytest.raises(NoData):
            aggregate_grid(series)
