"""Unit tests for report bucketing and CSV export."""

import datetime as dt

import pytest

from backoffice.schemas.reports import GroupBy, ReportResponse, ReportType
from backoffice.services.reporting import REPORT_COLUMNS, generate_report, percentage, period_key, to_csv
from backoffice.storage.models import utc_now


@pytest.mark.unit
class TestPeriodKey:

    @pytest.mark.parametrize("group_by,expected", [
        (GroupBy.DAY, "2025-03-14"),
        (GroupBy.WEEK, "2025-W11"),
        (GroupBy.MONTH, "2025-03"),
        (GroupBy.QUARTER, "2025-Q1"),
        (GroupBy.YEAR, "2025"),
    ])
    def test_buckets(self, group_by, expected):
        assert period_key(dt.date(2025, 3, 14), group_by) == expected

    def test_iso_week_crosses_year(self):
        # 30 Dec 2024 belongs to ISO week 1 of 2025
        assert period_key(dt.date(2024, 12, 30), GroupBy.WEEK) == "2025-W01"

    def test_quarter_boundaries(self):
        assert period_key(dt.date(2025, 4, 1), GroupBy.QUARTER) == "2025-Q2"
        assert period_key(dt.date(2025, 12, 31), GroupBy.QUARTER) == "2025-Q4"

    def test_accepts_plain_string(self):
        assert period_key(dt.date(2025, 3, 14), "month") == "2025-03"


@pytest.mark.unit
class TestPercentage:

    def test_ratio(self):
        assert percentage(1, 3) == 33.33

    def test_zero_denominator(self):
        assert percentage(5, 0) == 0.0


def _report(rows, columns=()):
    return ReportResponse(
        report_type=ReportType.REVENUE,
        generated_at=dt.datetime(2025, 3, 14, 10, 0),
        filters={},
        columns=list(columns),
        rows=rows,
    )


@pytest.mark.unit
class TestCsvExport:

    def test_header_and_rows(self):
        csv_text = to_csv(_report([
            {"period": "2025-03", "invoice_count": 2, "total_cents": 30000},
            {"period": "2025-04", "invoice_count": 1, "total_cents": 12000},
        ]))

        assert csv_text.splitlines() == [
            "period,invoice_count,total_cents",
            "2025-03,2,30000",
            "2025-04,1,12000",
        ]

    def test_columns_union_across_rows(self):
        csv_text = to_csv(_report([{"a": 1}, {"a": 2, "b": 3}]))

        assert csv_text.splitlines() == ["a,b", "1,", "2,3"]

    def test_empty_report_without_columns(self):
        assert to_csv(_report([])) == ""

    def test_empty_report_keeps_header(self):
        csv_text = to_csv(_report([], columns=REPORT_COLUMNS[ReportType.EXPENSES_BY_CATEGORY]))

        assert csv_text == "category,expense_count,total_cents,share_percentage\n"

    def test_declared_columns_lead_the_header(self):
        csv_text = to_csv(_report([{"b": 2, "a": 1, "extra": "x"}], columns=["a", "b"]))

        assert csv_text.splitlines() == ["a,b,extra", "1,2,x"]


@pytest.mark.unit
class TestTimestamps:

    def test_utc_now_is_naive_utc(self):
        before = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
        value = utc_now()
        after = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)

        assert value.tzinfo is None
        assert before <= value <= after

    async def test_report_generated_at_is_timezone_aware(self, db_session, tenant_id):
        report = await generate_report(db_session, tenant_id, ReportType.REVENUE)

        assert report.generated_at.utcoffset() == dt.timedelta(0)
        assert report.columns == REPORT_COLUMNS[ReportType.REVENUE]
        assert to_csv(report) == ",".join(REPORT_COLUMNS[ReportType.REVENUE]) + "\n"
