"""WhatsApp reminders, promotions and the message log"""
from datetime import date, datetime, timedelta
import random

import pytest

from apps.whatsapp import automation
from apps.whatsapp.automation import (
    BikeFacts, CustomerFacts, FrequencyCaps, LoggedMessage,
    can_send_to, due_messages, pick_promotion_template, render_template
)
from apps.whatsapp.models import WhatsAppMessage, WhatsAppTemplate, MessageStatus
from apps.whatsapp.services import WhatsAppService
from apps.whatsapp.transport import DeliveryResult, TransportError, get_transport
from apps.customers.models import Customer, Motorcycle
from apps.settings.models import WorkshopSetting
from main import app

NOW = datetime(2026, 3, 1, 9, 0)


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, phone_number, body):
        self.sent.append((phone_number, body))
        return DeliveryResult(status="sent", provider_message_id=f"wamid.{len(self.sent)}")


class BrokenTransport:
    def send(self, phone_number, body):
        raise TransportError("Recipient is not a WhatsApp user")


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def templates(db_session):
    rows = [
        WhatsAppTemplate(name="MOT soon", category="mot_reminder_30",
                         message_body="Hi {{FirstName}}, MOT on {{LicensePlate}} is due soon"),
        WhatsAppTemplate(name="MOT now", category="mot_reminder_7",
                         message_body="{{FirstName}}, MOT on your {{VehicleModel}} runs out this week"),
        WhatsAppTemplate(name="Oil", category="oil_change",
                         message_body="Hi {{FirstName}}, oil change due on the {{VehicleModel}}"),
        WhatsAppTemplate(name="Missed you", category="inactive_6m",
                         message_body="Hi {{FullName}}, long time no see"),
        WhatsAppTemplate(name="Brakes", category="promotion_brake",
                         message_body="{{FirstName}}, brake pads fitted half price"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {t.category: t for t in rows}


def _log(db_session, customer, trigger_type, when, category=None, status=MessageStatus.SENT):
    db_session.add(WhatsAppMessage(
        customer_id=customer.id, trigger_type=trigger_type, template_category=category,
        phone_number="447700900123", message_body="earlier", status=status, created_at=when
    ))
    db_session.commit()


def _bike(**dates):
    return BikeFacts(id=1, make="Honda", model="CB500F", registration="AB12CDE", **dates)


class TestRenderTemplate:

    def test_fills_known_variables(self):
        body = "Hi {{FirstName}}, your {{VehicleModel}} ({{LicensePlate}}). Thanks {{FirstName}}!"
        result = render_template(body, {"FirstName": "Jane", "VehicleModel": "Honda CB500F", "LicensePlate": ""})
        assert result == "Hi Jane, your Honda CB500F (). Thanks Jane!"

    def test_leaves_unknown_placeholders(self):
        assert render_template("Hi {{Nickname}}", {"FirstName": "Jane"}) == "Hi {{Nickname}}"

    def test_first_name_from_full_name(self):
        variables = automation.template_variables("Jane Rider", None)
        assert variables["FirstName"] == "Jane"
        assert variables["VehicleModel"] == "vehicle"


class TestCanSendTo:

    def test_empty_history(self):
        assert can_send_to([], NOW)

    def test_weekly_promotion_cap(self):
        history = [LoggedMessage("promotion", NOW - timedelta(days=3))]
        assert not can_send_to(history, NOW)
        assert can_send_to(history, NOW, caps=FrequencyCaps(max_promo_per_week=2, max_messages_per_month=5))

    def test_old_promotion_does_not_count_this_week(self):
        assert can_send_to([LoggedMessage("promotion", NOW - timedelta(days=8))], NOW)

    def test_monthly_cap_counts_every_kind(self):
        history = [
            LoggedMessage("oil_change", NOW - timedelta(days=20)),
            LoggedMessage("mot_reminder", NOW - timedelta(days=2)),
        ]
        assert not can_send_to(history, NOW)

    def test_messages_older_than_30_days_are_ignored(self):
        history = [LoggedMessage("oil_change", NOW - timedelta(days=31))] * 5
        assert can_send_to(history, NOW)

    def test_urgent_skips_caps(self):
        history = [LoggedMessage("promotion", NOW - timedelta(days=1))] * 3
        assert can_send_to(history, NOW, is_urgent=True)


class TestDueMessages:

    def _customer(self, *bikes, phone="07700 900123", last_visit=None):
        return CustomerFacts(id=7, name="Jane Rider", phone=phone, bikes=bikes, last_visit=last_visit)

    def test_mot_within_30_days(self):
        due = due_messages(self._customer(_bike(mot_expiry_date=date(2026, 3, 20))), NOW)
        assert [d.category for d in due] == ["mot_reminder_30"]
        assert due[0].trigger_type == "mot_reminder"
        assert due[0].is_urgent
        assert due[0].variables["LicensePlate"] == "AB12CDE"

    def test_mot_within_7_days(self):
        due = due_messages(self._customer(_bike(mot_expiry_date=date(2026, 3, 5))), NOW)
        assert [d.category for d in due] == ["mot_reminder_7"]
        assert due[0].trigger_type == "mot_reminder_urgent"

    @pytest.mark.parametrize("expiry", [date(2026, 3, 1), date(2026, 2, 10), date(2026, 4, 15)])
    def test_mot_outside_windows(self, expiry):
        assert due_messages(self._customer(_bike(mot_expiry_date=expiry)), NOW) == []

    def test_oil_change_after_six_months(self):
        due = due_messages(self._customer(_bike(last_service_date=date(2025, 8, 1))), NOW)
        assert [d.category for d in due] == ["oil_change"]
        assert not due[0].is_urgent
        assert due_messages(self._customer(_bike(last_service_date=date(2026, 1, 5))), NOW) == []

    @pytest.mark.parametrize("days_away, expected", [
        (400, ["inactive_12m"]),
        (200, ["inactive_6m"]),
        (100, []),
    ])
    def test_inactive_customers(self, days_away, expected):
        customer = self._customer(_bike(), last_visit=NOW - timedelta(days=days_away))
        assert [d.category for d in due_messages(customer, NOW)] == expected

    def test_never_seen_customer_is_not_inactive(self):
        assert due_messages(self._customer(_bike(), last_visit=None), NOW) == []

    def test_no_phone_no_messages(self):
        bike = _bike(mot_expiry_date=date(2026, 3, 5))
        assert due_messages(self._customer(bike, phone=None), NOW) == []
        assert due_messages(self._customer(bike, phone="  "), NOW) == []


class TestPickPromotion:

    class _Template:
        def __init__(self, id):
            self.id = id

    def test_prefers_unused(self):
        options = [self._Template(1), self._Template(2), self._Template(3)]
        for seed in range(10):
            assert pick_promotion_template(options, [1, 3], random.Random(seed)).id == 2

    def test_all_used_still_picks_one(self):
        options = [self._Template(1), self._Template(2)]
        assert pick_promotion_template(options, [1, 2], random.Random(0)).id in (1, 2)

    def test_nothing_to_pick(self):
        assert pick_promotion_template([], []) is None


class TestRunTriggers:

    def test_sends_mot_reminder(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.mot_expiry_date = date(2026, 3, 20)
        db_session.commit()

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)

        assert result["results"]["mot_reminder_30"] == 1
        assert transport.sent == [("447700900123", "Hi Jane, MOT on AB12CDE is due soon")]
        message = result["messages"][0]
        assert message["status"] == "sent"
        assert message["trigger_type"] == "mot_reminder"
        assert message["sent_at"] == NOW

        logged = db_session.query(WhatsAppMessage).one()
        assert logged.template_id == templates["mot_reminder_30"].id
        assert logged.provider_message_id == "wamid.1"

    def test_same_reminder_is_not_repeated_next_day(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.mot_expiry_date = date(2026, 3, 20)
        db_session.commit()
        service = WhatsAppService(db_session, transport)

        service.run_triggers(now=NOW)
        second = service.run_triggers(now=NOW + timedelta(days=1))

        assert second["results"]["mot_reminder_30"] == 0
        assert len(transport.sent) == 1

    def test_monthly_cap_holds_back_oil_change(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.last_service_date = date(2025, 6, 1)
        db_session.commit()
        _log(db_session, customer, "promotion", NOW - timedelta(days=12))
        _log(db_session, customer, "mot_reminder", NOW - timedelta(days=20))

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)

        assert result["results"]["oil_change"] == 0
        assert result["skipped_by_caps"] == 1
        assert transport.sent == []

    def test_failed_messages_do_not_use_up_the_cap(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.last_service_date = date(2025, 6, 1)
        db_session.commit()
        _log(db_session, customer, "promotion", NOW - timedelta(days=12), status=MessageStatus.FAILED)
        _log(db_session, customer, "mot_reminder", NOW - timedelta(days=20), status=MessageStatus.FAILED)

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)
        assert result["results"]["oil_change"] == 1

    def test_urgent_mot_ignores_caps(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.mot_expiry_date = date(2026, 3, 4)
        db_session.commit()
        _log(db_session, customer, "promotion", NOW - timedelta(days=2))
        _log(db_session, customer, "oil_change", NOW - timedelta(days=5))

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)

        assert result["results"]["mot_reminder_7"] == 1
        assert transport.sent[0][1] == "Jane, MOT on your Honda CB500F runs out this week"

    def test_inactive_customer(self, db_session, customer, templates, transport, make_job):
        make_job(created_at=NOW - timedelta(days=200))

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)

        assert result["results"]["inactive_6m"] == 1
        assert transport.sent[0][1] == "Hi Jane Rider, long time no see"

    def test_switched_off_template_sends_nothing(self, db_session, customer, motorcycle, templates, transport):
        motorcycle.mot_expiry_date = date(2026, 3, 20)
        templates["mot_reminder_30"].active = False
        db_session.commit()

        result = WhatsAppService(db_session, transport).run_triggers(now=NOW)
        assert result["results"]["mot_reminder_30"] == 0
        assert transport.sent == []

    def test_transport_failure_is_logged(self, db_session, customer, motorcycle, templates):
        motorcycle.mot_expiry_date = date(2026, 3, 20)
        db_session.commit()

        result = WhatsAppService(db_session, BrokenTransport()).run_triggers(now=NOW)

        message = result["messages"][0]
        assert message["status"] == "failed"
        assert message["error_message"] == "Recipient is not a WhatsApp user"

    def test_manual_transport_queues_with_share_link(self, client, owner_headers, db_session, customer,
                                                      motorcycle, templates):
        motorcycle.mot_expiry_date = date(2026, 3, 20)
        db_session.commit()

        response = client.post(
            "/api/v1/whatsapp/run-triggers", params={"now": NOW.isoformat()}, headers=owner_headers
        )
        assert response.status_code == 200
        message = response.json()["messages"][0]
        assert message["status"] == "queued"
        assert message["whatsapp_url"].startswith("https://wa.me/447700900123?text=Hi%20Jane")


class TestRunPromotion:

    def test_sends_to_customers_under_cap(self, db_session, customer, templates, transport):
        other = Customer(name="Sam Biker", phone="07700 900999")
        other.motorcycles.append(Motorcycle(registration="XY99ZZZ", make="Triumph", model="Bonneville"))
        no_phone = Customer(name="Off Grid")
        db_session.add_all([other, no_phone])
        db_session.commit()
        _log(db_session, other, "promotion", NOW - timedelta(days=2))

        result = WhatsAppService(db_session, transport).run_promotion(now=NOW, rng=random.Random(1))

        assert result == {"sent": 1, "skipped_by_caps": 1, "template_used": "Brakes"}
        assert transport.sent == [("447700900123", "Jane, brake pads fitted half price")]

    def test_caps_come_from_settings(self, db_session, customer, templates, transport):
        db_session.add(WorkshopSetting(key="whatsapp_max_promo_per_week", value="3"))
        db_session.commit()
        _log(db_session, customer, "promotion", NOW - timedelta(days=2))

        result = WhatsAppService(db_session, transport).run_promotion(now=NOW)
        assert result["sent"] == 1

    def test_no_promotion_templates(self, client, owner_headers):
        assert client.post("/api/v1/whatsapp/run-promotion", headers=owner_headers).status_code == 400


class TestMessageLog:

    def test_owner_only(self, client, staff_headers):
        assert client.get("/api/v1/whatsapp/messages", headers=staff_headers).status_code == 403
        assert client.post("/api/v1/whatsapp/run-triggers", headers=staff_headers).status_code == 403

    def test_delivery_updates_and_stats(self, client, owner_headers, db_session, customer, motorcycle,
                                        templates, transport):
        app.dependency_overrides[get_transport] = lambda: transport
        motorcycle.mot_expiry_date = (datetime.utcnow() + timedelta(days=20)).date()
        db_session.commit()

        message = client.post("/api/v1/whatsapp/run-triggers", headers=owner_headers).json()["messages"][0]
        assert message["status"] == "sent"

        updated = client.patch(
            f"/api/v1/whatsapp/messages/{message['id']}/status", json={"status": "read"}, headers=owner_headers
        ).json()
        assert updated["status"] == "read"
        assert updated["read_at"] is not None

        stats = client.get("/api/v1/whatsapp/stats", headers=owner_headers).json()
        assert stats["total_sent"] == 1
        assert stats["read"] == 1
        assert stats["max_messages_per_month"] == 2

        listed = client.get(
            "/api/v1/whatsapp/messages", params={"customer_id": customer.id}, headers=owner_headers
        ).json()
        assert [m["id"] for m in listed] == [message["id"]]

    def test_unknown_message(self, client, owner_headers):
        response = client.patch(
            "/api/v1/whatsapp/messages/999/status", json={"status": "delivered"}, headers=owner_headers
        )
        assert response.status_code == 404


class TestTemplates:

    def test_create_and_switch_off(self, client, owner_headers):
        created = client.post(
            "/api/v1/whatsapp/templates",
            json={"name": "Winter check", "category": "seasonal", "message_body": "Hi {{FirstName}}"},
            headers=owner_headers
        )
        assert created.status_code == 201

        updated = client.patch(
            f"/api/v1/whatsapp/templates/{created.json()['id']}", json={"active": False}, headers=owner_headers
        ).json()
        assert updated["active"] is False

    def test_unknown_category_is_refused(self, client, owner_headers):
        response = client.post(
            "/api/v1/whatsapp/templates",
            json={"name": "Odd", "category": "birthday", "message_body": "Hi"},
            headers=owner_headers
        )
        assert response.status_code == 422


class TestMotorcycleReminderFields:

    def test_dates_are_stored(self, client, staff_headers, motorcycle):
        response = client.put(
            f"/api/v1/customers/motorcycles/{motorcycle.id}",
            json={"mot_expiry_date": "2026-05-01", "last_service_date": "2025-11-20",
                  "last_service_type": "Major service"},
            headers=staff_headers
        )
        assert response.status_code == 200
        assert response.json()["mot_expiry_date"] == "2026-05-01"
        assert response.json()["last_service_type"] == "Major service"
