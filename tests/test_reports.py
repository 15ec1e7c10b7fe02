"""Owner reports"""
from datetime import datetime, date, timedelta

from apps.repairs.models import JobStatus, PaymentStatus
from apps.reports.services import ReportService
from apps.sales.models import AccessorySale, MotorcycleSale


def _bike_sale(db_session, sold_at, price, cost):
    db_session.add(MotorcycleSale(sale_price=price, cost_price=cost, sale_date=sold_at))
    db_session.commit()


def _accessory_sale(db_session, sold_at, total):
    db_session.add(AccessorySale(total=total, created_at=sold_at))
    db_session.commit()


class TestDashboard:

    def test_revenue_and_unpaid(self, db_session, make_job, stock_item):
        now = datetime(2026, 3, 15, 14, 0)
        make_job(services=[("Service", 60.00)], final_cost=72.00,
                 payment_status=PaymentStatus.PAID, payment_date=now - timedelta(hours=2))
        make_job(services=[("Tyres", 100.00)],
                 payment_status=PaymentStatus.PAID, payment_date=now - timedelta(days=5))
        make_job(services=[("Last month", 40.00)],
                 payment_status=PaymentStatus.PAID, payment_date=datetime(2026, 2, 27, 10, 0))
        make_job(services=[("Chain kit", 30.00)], status=JobStatus.IN_REPAIR)
        make_job(services=[("Abandoned", 500.00)], status=JobStatus.CANCELLED)

        result = ReportService(db_session).dashboard(now=now)

        assert result["today_revenue"] == 72.00
        assert result["month_revenue"] == 172.00
        assert result["month_repair_revenue"] == 172.00
        assert result["unpaid_total"] == 30.00
        assert result["open_jobs"] == 4
        assert result["low_stock_items"] == 0

    def test_includes_bike_and_accessory_sales(self, db_session, make_job):
        now = datetime(2026, 3, 15, 14, 0)
        make_job(services=[("Service", 60.00)],
                 payment_status=PaymentStatus.PAID, payment_date=now - timedelta(hours=1))
        _bike_sale(db_session, now - timedelta(hours=3), price=3200.00, cost=2500.00)
        _bike_sale(db_session, datetime(2026, 3, 2, 11, 0), price=1800.00, cost=1900.00)
        _bike_sale(db_session, datetime(2026, 2, 28, 11, 0), price=5000.00, cost=4000.00)
        _accessory_sale(db_session, now - timedelta(minutes=30), total=45.50)
        _accessory_sale(db_session, datetime(2026, 3, 1, 9, 0), total=20.00)

        result = ReportService(db_session).dashboard(now=now)

        assert result["today_revenue"] == 60.00 + 3200.00 + 45.50
        assert result["month_repair_revenue"] == 60.00
        assert result["month_motorcycle_revenue"] == 5000.00
        assert result["month_motorcycle_profit"] == 600.00
        assert result["month_accessory_revenue"] == 65.50
        assert result["month_revenue"] == 5125.50

    def test_owner_only(self, client, staff_headers, owner_headers):
        assert client.get("/api/v1/reports/dashboard", headers=staff_headers).status_code == 403
        assert client.get("/api/v1/reports/dashboard", headers=owner_headers).status_code == 200


class TestSummary:

    def test_monthly_and_top_parts(self, db_session, make_job):
        make_job(parts=[(2, 10.00, "Oil filter")], final_cost=50.00,
                 payment_status=PaymentStatus.PAID, payment_date=datetime(2026, 1, 20),
                 received_at=datetime(2026, 1, 18))
        make_job(parts=[(1, 10.00, "Oil filter"), (1, 45.00, "Battery")],
                 payment_status=PaymentStatus.PAID, payment_date=datetime(2026, 2, 3),
                 received_at=datetime(2026, 2, 1))
        make_job(services=[("Diagnosis", 40.00)], received_at=datetime(2026, 2, 10))

        result = ReportService(db_session).summary(start=date(2026, 1, 1), end=date(2026, 2, 28))

        assert result["total_jobs"] == 3
        assert result["paid_jobs"] == 2
        assert result["repair_revenue"] == 105.00
        assert result["total_revenue"] == 105.00
        assert result["unpaid_total"] == 40.00
        assert result["average_job_value"] == 52.50
        assert result["monthly_revenue"] == [
            {"month": "2026-01", "repairs": 50.00, "motos": 0.0, "accessories": 0.0, "total": 50.00, "jobs_paid": 1},
            {"month": "2026-02", "repairs": 55.00, "motos": 0.0, "accessories": 0.0, "total": 55.00, "jobs_paid": 1},
        ]
        assert result["top_parts"][0] == {"name": "Oil filter", "quantity": 3, "revenue": 30.00}

    def test_sales_in_monthly_series(self, db_session, make_job):
        make_job(services=[("Service", 100.00)],
                 payment_status=PaymentStatus.PAID, payment_date=datetime(2026, 1, 20),
                 received_at=datetime(2026, 1, 18))
        _bike_sale(db_session, datetime(2026, 1, 25), price=3000.00, cost=2400.00)
        _bike_sale(db_session, datetime(2026, 2, 14), price=2000.00, cost=2100.00)
        _bike_sale(db_session, datetime(2026, 3, 1), price=9999.00, cost=1.00)
        _accessory_sale(db_session, datetime(2026, 2, 2), total=30.00)

        result = ReportService(db_session).summary(start=date(2026, 1, 1), end=date(2026, 2, 28))

        assert result["motorcycle_revenue"] == 5000.00
        assert result["motorcycle_profit"] == 500.00
        assert result["motorcycles_sold"] == 2
        assert result["accessory_revenue"] == 30.00
        assert result["accessory_sales"] == 1
        assert result["total_revenue"] == 5130.00
        assert result["monthly_revenue"] == [
            {"month": "2026-01", "repairs": 100.00, "motos": 3000.00, "accessories": 0.0, "total": 3100.00,
             "jobs_paid": 1},
            {"month": "2026-02", "repairs": 0.0, "motos": 2000.00, "accessories": 30.00, "total": 2030.00,
             "jobs_paid": 0},
        ]

    def test_paid_job_without_payment_date_uses_completion_month(self, db_session, make_job):
        make_job(services=[("Service", 80.00)], payment_status=PaymentStatus.PAID,
                 received_at=datetime(2026, 1, 30), completed_at=datetime(2026, 2, 2))

        result = ReportService(db_session).summary(start=date(2026, 1, 1), end=date(2026, 2, 28))

        assert [m["month"] for m in result["monthly_revenue"]] == ["2026-02"]
        assert result["monthly_revenue"][0]["repairs"] == 80.00

    def test_range_excludes_other_jobs(self, db_session, make_job):
        make_job(services=[("Old", 10.00)], received_at=datetime(2025, 12, 31, 23, 0))
        result = ReportService(db_session).summary(start=date(2026, 1, 1), end=date(2026, 1, 31))
        assert result["total_jobs"] == 0
        assert result["average_job_value"] == 0.0

    def test_start_after_end(self, client, owner_headers):
        response = client.get(
            "/api/v1/reports/summary", params={"start": "2026-02-01", "end": "2026-01-01"}, headers=owner_headers
        )
        assert response.status_code == 400
