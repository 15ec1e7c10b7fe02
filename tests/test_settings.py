"""Workshop settings"""
import pytest

from apps.invoices import pricing
from apps.settings.services import DEFAULTS, parse_vat_rate


class TestWorkshopSettings:

    def test_defaults(self, client, staff_headers):
        body = client.get("/api/v1/settings/", headers=staff_headers).json()
        assert body["workshop_name"] == "Two Wheels Motorcycles"
        assert body["currency"] == "£"
        assert body["vat_rate"] == 20.0

    def test_owner_updates(self, client, owner_headers):
        response = client.put(
            "/api/v1/settings/",
            json={"values": {"workshop_name": "Fast Eddie's", "vat_rate": "17.5"}},
            headers=owner_headers
        )
        assert response.status_code == 200
        assert response.json()["workshop_name"] == "Fast Eddie's"
        assert response.json()["vat_rate"] == 17.5

        # Second write updates the stored row in place
        body = client.put(
            "/api/v1/settings/", json={"values": {"vat_rate": "5"}}, headers=owner_headers
        ).json()
        assert body["vat_rate"] == 5.0
        assert body["workshop_name"] == "Fast Eddie's"

    def test_staff_cannot_update(self, client, staff_headers):
        response = client.put(
            "/api/v1/settings/", json={"values": {"vat_rate": "0"}}, headers=staff_headers
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("rate", ["abc", "-1", "150"])
    def test_invalid_vat_rate_is_refused(self, client, owner_headers, rate):
        response = client.put(
            "/api/v1/settings/", json={"values": {"vat_rate": rate}}, headers=owner_headers
        )
        assert response.status_code == 422


class TestParseVatRate:

    @pytest.mark.parametrize("raw, expected", [
        ("20", 20.0),
        ("0", 0.0),
        ("17.5", 17.5),
        (None, 20.0),
        ("", 20.0),
        ("twenty", 20.0),
        ("nan", 20.0),
        ("-5", 20.0),
        ("101", 20.0),
    ])
    def test_parse(self, raw, expected):
        assert parse_vat_rate(raw) == expected

    def test_default_follows_pricing_default(self):
        assert parse_vat_rate(None) == pricing.DEFAULT_VAT_RATE
        assert float(DEFAULTS["vat_rate"]) == pricing.DEFAULT_VAT_RATE
