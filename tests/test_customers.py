"""Customers and their motorcycles"""
from datetime import datetime

from apps.customers.models import Customer, Motorcycle
from apps.repairs.models import RepairJob, JobStatus, PaymentStatus


class TestCustomers:

    def test_create_with_motorcycle(self, client, staff_headers):
        response = client.post(
            "/api/v1/customers/",
            json={
                "name": "Sam Biker",
                "phone": "07123 456789",
                "email": "sam@example.com",
                "motorcycles": [{"registration": " yx21 abc", "make": "Triumph", "model": "Street Triple"}],
            },
            headers=staff_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Sam Biker"
        assert body["motorcycles"][0]["registration"] == "YX21 ABC"

    def test_invalid_email_is_refused(self, client, staff_headers):
        response = client.post(
            "/api/v1/customers/", json={"name": "Sam", "email": "not-an-email"}, headers=staff_headers
        )
        assert response.status_code == 422

    def test_search_by_registration(self, client, staff_headers, customer):
        body = client.get("/api/v1/customers/", params={"search": "ab12"}, headers=staff_headers).json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == customer.id

        body = client.get("/api/v1/customers/", params={"search": "nobody"}, headers=staff_headers).json()
        assert body["total"] == 0

    def test_update(self, client, staff_headers, customer):
        body = client.put(
            f"/api/v1/customers/{customer.id}", json={"phone": "01234 567890"}, headers=staff_headers
        ).json()
        assert body["phone"] == "01234 567890"
        assert body["name"] == "Jane Rider"

    def test_detail_with_history(self, client, staff_headers, make_job, customer):
        make_job(services=[("Service", 100.00)], final_cost=120.00,
                 payment_status=PaymentStatus.PAID, payment_date=datetime.utcnow())
        make_job(services=[("Tyres", 80.00)])
        make_job(services=[("Abandoned", 500.00)], status=JobStatus.CANCELLED)

        body = client.get(f"/api/v1/customers/{customer.id}", headers=staff_headers).json()
        assert len(body["jobs"]) == 3
        assert body["total_spent"] == 120.00
        assert body["unpaid_balance"] == 80.00

    def test_detail_rounds_half_up(self, client, staff_headers, make_job, customer):
        make_job(final_cost=2.675, payment_status=PaymentStatus.PAID, payment_date=datetime.utcnow())
        make_job(final_cost=1.005)

        body = client.get(f"/api/v1/customers/{customer.id}", headers=staff_headers).json()
        assert body["total_spent"] == 2.68
        assert body["unpaid_balance"] == 1.01
        assert sorted(job["total"] for job in body["jobs"]) == [1.01, 2.68]

    def test_delete_removes_bikes_and_jobs(self, client, staff_headers, db_session, make_job, customer):
        make_job(services=[("Service", 100.00)])
        customer_id = customer.id

        response = client.delete(f"/api/v1/customers/{customer_id}", headers=staff_headers)
        assert response.status_code == 200

        db_session.expire_all()
        assert db_session.get(Customer, customer_id) is None
        assert db_session.query(Motorcycle).count() == 0
        assert db_session.query(RepairJob).count() == 0

    def test_missing_customer(self, client, staff_headers):
        assert client.get("/api/v1/customers/999", headers=staff_headers).status_code == 404


class TestMotorcycles:

    def test_add_and_update(self, client, staff_headers, customer):
        added = client.post(
            f"/api/v1/customers/{customer.id}/motorcycles",
            json={"registration": "ke19xyz", "make": "Kawasaki", "model": "Z900", "year": 2019},
            headers=staff_headers
        )
        assert added.status_code == 201
        moto_id = added.json()["id"]
        assert added.json()["registration"] == "KE19XYZ"

        updated = client.put(
            f"/api/v1/customers/motorcycles/{moto_id}", json={"model": "Z900RS"}, headers=staff_headers
        ).json()
        assert updated["model"] == "Z900RS"

    def test_cannot_delete_bike_with_jobs(self, client, staff_headers, make_job, motorcycle):
        make_job()
        response = client.delete(f"/api/v1/customers/motorcycles/{motorcycle.id}", headers=staff_headers)
        assert response.status_code == 400

    def test_delete_bike_without_jobs(self, client, staff_headers, motorcycle):
        response = client.delete(f"/api/v1/customers/motorcycles/{motorcycle.id}", headers=staff_headers)
        assert response.status_code == 200
