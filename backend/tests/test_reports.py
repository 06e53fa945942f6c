"""
Shift reports over date ranges and their CSV/PDF exports.
"""

import csv
import io
from datetime import date

import pytest

from conftest import MORNING_NOW, NIGHT_NOW
from homebake.models import Activity
from homebake.services import production_service, report_service, sales_service
from homebake.services.report_service import CSV_COLUMNS, ReportError


BUSINESS_DATE = date(2026, 3, 10)


@pytest.fixture
def trading_day(db_session, manager, sales_rep, bread_type):
    production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=50, now=MORNING_NOW)
    sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=20, discount_cents=2000, now=MORNING_NOW)
    production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=10, now=NIGHT_NOW)
    sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=4, leftover=2, now=NIGHT_NOW)
    return bread_type


class TestBuildReport:

    def test_breakdown_per_shift(self, trading_day):
        report = report_service.build_report(trading_day.bakery_id, BUSINESS_DATE, BUSINESS_DATE)

        assert [(s["business_date"], s["shift"]) for s in report["shifts"]] == [
            ("2026-03-10", "morning"),
            ("2026-03-10", "night"),
        ]
        morning, night = report["shifts"]
        assert morning["items"][0]["produced"] == 50
        assert morning["items"][0]["sold"] == 20
        assert morning["items"][0]["revenue_cents"] == 20 * 50000 - 2000
        assert night["totals"]["leftover"] == 2
        assert report["totals"] == {
            "produced": 60,
            "sold": 24,
            "revenue_cents": 24 * 50000 - 2000,
            "leftover": 2,
            "discount_cents": 2000,
        }

    def test_shift_filter(self, trading_day):
        report = report_service.build_report(trading_day.bakery_id, BUSINESS_DATE, BUSINESS_DATE, "night")
        assert [s["shift"] for s in report["shifts"]] == ["night"]
        assert report["period"]["shift"] == "night"

    def test_quiet_days_are_omitted(self, trading_day):
        report = report_service.build_report(trading_day.bakery_id, date(2026, 3, 1), date(2026, 3, 9))
        assert report["shifts"] == []
        assert report["totals"]["produced"] == 0


class TestParseRange:

    def test_defaults_to_current_business_date(self, app):
        assert report_service.parse_range(None, None, now=NIGHT_NOW) == (BUSINESS_DATE, BUSINESS_DATE)

    def test_single_start_is_one_day(self, app):
        assert report_service.parse_range("2026-03-01", None, now=MORNING_NOW) == (date(2026, 3, 1), date(2026, 3, 1))

    @pytest.mark.parametrize("start,end", [
        ("2026-03-10", "2026-03-01"),
        ("10/03/2026", None),
        ("2026-01-01", "2026-06-30"),
    ])
    def test_invalid_ranges(self, app, start, end):
        with pytest.raises(ReportError):
            report_service.parse_range(start, end, now=MORNING_NOW)


class TestExports:

    def test_csv_rows(self, trading_day):
        report = report_service.build_report(trading_day.bakery_id, BUSINESS_DATE, BUSINESS_DATE)
        rows = list(csv.reader(io.StringIO(report_service.report_csv(report))))

        assert rows[0] == CSV_COLUMNS
        assert rows[1] == ["2026-03-10", "morning", "Agege Loaf", "500.00", "50", "20", "9980.00", "0", "20.00"]
        assert rows[2][1] == "night"
        assert len(rows) == 3

    def test_pdf_is_generated(self, trading_day):
        report = report_service.build_report(trading_day.bakery_id, BUSINESS_DATE, BUSINESS_DATE)
        pdf = report_service.report_pdf(report, bakery_name="Sunrise Bakery")
        assert pdf.startswith(b"%PDF")

    def test_empty_pdf_is_generated(self, db_session, bakery):
        report = report_service.build_report(bakery.id, BUSINESS_DATE, BUSINESS_DATE)
        assert report_service.report_pdf(report, bakery_name=bakery.name).startswith(b"%PDF")

    def test_production_csv_uses_local_time(self, trading_day):
        body = report_service.production_csv(trading_day.bakery_id, BUSINESS_DATE, BUSINESS_DATE)
        rows = list(csv.reader(io.StringIO(body)))

        assert rows[0] == ["Date", "Bread Type", "Quantity", "Shift", "Time"]
        assert rows[1] == ["2026-03-10", "Agege Loaf", "50", "morning", "13:00"]
        assert rows[2] == ["2026-03-10", "Agege Loaf", "10", "night", "00:30"]


class TestReportEndpoints:

    def test_json_report(self, client, owner_headers, trading_day):
        response = client.get('/api/reports?start=2026-03-10&end=2026-03-10', headers=owner_headers)
        assert response.status_code == 200
        assert response.json["data"]["totals"]["produced"] == 60

    def test_csv_download_logs_activity(self, client, manager_headers, manager, trading_day, db_session):
        response = client.get('/api/reports/export.csv?start=2026-03-10&end=2026-03-10&shift=morning', headers=manager_headers)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        assert response.data.decode().splitlines()[0].startswith("Date,Shift,Bread Type")

        activity = db_session.query(Activity).filter_by(activity_type="report", user_id=manager.id).one()
        assert activity.message == "Generated CSV report for morning shift"

    def test_pdf_download(self, client, owner_headers, trading_day):
        response = client.get('/api/reports/export.pdf?start=2026-03-10&end=2026-03-10', headers=owner_headers)
        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")

    def test_bad_range(self, client, owner_headers):
        response = client.get('/api/reports?start=2026-03-10&end=2026-03-01', headers=owner_headers)
        assert response.status_code == 400

    def test_production_csv_endpoint(self, client, owner_headers, trading_day):
        response = client.get('/api/reports/production.csv?start=2026-03-10&end=2026-03-10', headers=owner_headers)
        assert response.status_code == 200
        assert len(response.data.decode().strip().splitlines()) == 3
