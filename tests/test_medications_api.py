"""
Tests de endpoints de medicamentos, registro de dosis y adherencia
"""
from datetime import datetime, timedelta, timezone

from bp_manager.models.medication import Medication


def create_medication(client, headers, payload):
    response = client.post("/api/medications/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def log_dose(client, headers, medication_id, taken_at=None, **extra):
    body = dict(extra)
    if taken_at is not None:
        body["taken_at"] = taken_at
    return client.post(f"/api/medications/{medication_id}/log", json=body, headers=headers)


class TestMedicationCrud:

    def test_requires_authentication(self, client):
        assert client.get("/api/medications/").status_code == 401

    def test_create_and_list(self, client, patient_headers, medication_payload):
        created = create_medication(client, patient_headers, medication_payload(side_effects=["Mareo", "Mareo", " "]))

        assert created["active"] is True
        assert created["side_effects"] == ["Mareo"]
        assert created["custom_schedule"] == []

        listing = client.get("/api/medications/", headers=patient_headers).json()
        assert [m["id"] for m in listing] == [created["id"]]

    def test_custom_frequency_requires_schedule(self, client, patient_headers, medication_payload):
        response = client.post(
            "/api/medications/",
            json=medication_payload(frequency="custom"),
            headers=patient_headers
        )
        assert response.status_code == 422

        created = create_medication(client, patient_headers, medication_payload(
            frequency="custom",
            custom_schedule=[{"time": "08:30", "days": ["monday", "thursday", "monday"]}]
        ))
        assert created["custom_schedule"] == [{"time": "08:30", "days": ["monday", "thursday"]}]

    def test_schedule_discarded_for_fixed_frequency(self, client, patient_headers, medication_payload):
        created = create_medication(client, patient_headers, medication_payload(
            custom_schedule=[{"time": "08:30", "days": ["monday"]}]
        ))
        assert created["custom_schedule"] == []

    def test_invalid_schedule_time(self, client, patient_headers, medication_payload):
        response = client.post(
            "/api/medications/",
            json=medication_payload(frequency="custom", custom_schedule=[{"time": "25:99", "days": ["monday"]}]),
            headers=patient_headers
        )
        assert response.status_code == 422

    def test_end_date_before_start_date(self, client, patient_headers, medication_payload):
        response = client.post(
            "/api/medications/",
            json=medication_payload(start_date="2024-02-01", end_date="2024-01-01"),
            headers=patient_headers
        )
        assert response.status_code == 422

        created = create_medication(client, patient_headers, medication_payload())
        response = client.put(
            f"/api/medications/{created['id']}",
            json={"end_date": "2023-12-01"},
            headers=patient_headers
        )
        assert response.status_code == 400

    def test_switching_to_custom_without_schedule_fails(self, client, patient_headers, medication_payload):
        created = create_medication(client, patient_headers, medication_payload())
        response = client.put(
            f"/api/medications/{created['id']}",
            json={"frequency": "custom"},
            headers=patient_headers
        )
        assert response.status_code == 400

    def test_update(self, client, patient_headers, medication_payload):
        created = create_medication(client, patient_headers, medication_payload())
        response = client.put(
            f"/api/medications/{created['id']}",
            json={"dosage_amount": 100, "instructions": "Con alimentos"},
            headers=patient_headers
        )
        assert response.status_code == 200
        assert response.json()["dosage_amount"] == 100
        assert response.json()["instructions"] == "Con alimentos"

    def test_other_patient_cannot_access(self, client, patient_headers, make_user, headers_for, medication_payload):
        created = create_medication(client, patient_headers, medication_payload())
        other_headers = headers_for(make_user())

        assert client.get(f"/api/medications/{created['id']}", headers=other_headers).status_code == 404
        assert log_dose(client, other_headers, created["id"]).status_code == 404

    def test_deactivate_keeps_history(self, client, patient_headers, medication_payload):
        created = create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        assert log_dose(client, patient_headers, created["id"], "2024-01-10T08:00:00Z").status_code == 201

        response = client.delete(f"/api/medications/{created['id']}", headers=patient_headers)
        assert response.status_code == 200

        medication = client.get(f"/api/medications/{created['id']}", headers=patient_headers).json()
        assert medication["active"] is False
        assert medication["deactivated_at"] is not None

        assert client.get("/api/medications/?active=true", headers=patient_headers).json() == []
        assert len(client.get("/api/medications/?active=false", headers=patient_headers).json()) == 1

        logs = client.get(f"/api/medications/{created['id']}/logs", headers=patient_headers).json()
        assert logs["total"] == 1

        # No se registran dosis de medicamentos inactivos
        assert log_dose(client, patient_headers, created["id"], "2024-01-11T08:00:00Z").status_code == 404

    def test_upcoming_refills(self, client, patient_headers, medication_payload):
        today = datetime.now(timezone.utc).date()
        soon = create_medication(client, patient_headers, medication_payload(
            name="Soon", refill_date=(today + timedelta(days=5)).isoformat()
        ))
        create_medication(client, patient_headers, medication_payload(
            name="Later", refill_date=(today + timedelta(days=60)).isoformat()
        ))
        create_medication(client, patient_headers, medication_payload(name="NoRefill"))

        refills = client.get("/api/medications/refills", headers=patient_headers).json()
        assert [m["id"] for m in refills] == [soon["id"]]


class TestDoseLogging:

    def test_twice_daily_interval(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="twice_daily"))
        medication_id = medication["id"]

        first = log_dose(client, patient_headers, medication_id, "2024-01-10T08:00:00Z", notes="Mañana")
        assert first.status_code == 201
        assert first.json()["notes"] == "Mañana"

        rejected = log_dose(client, patient_headers, medication_id, "2024-01-10T19:00:00Z")
        assert rejected.status_code == 409
        detail = rejected.json()["detail"]
        assert detail["allowed"] is False
        assert detail["reason"] == "interval not yet elapsed"
        assert detail["message"]
        assert detail["next_allowed_at"].startswith("2024-01-10T20:00:00")

        assert log_dose(client, patient_headers, medication_id, "2024-01-10T20:00:00Z").status_code == 201

        logs = client.get(f"/api/medications/{medication_id}/logs", headers=patient_headers).json()
        assert logs["total"] == 2

    def test_once_daily_calendar_day(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        medication_id = medication["id"]

        assert log_dose(client, patient_headers, medication_id, "2024-01-10T23:50:00Z").status_code == 201

        rejected = log_dose(client, patient_headers, medication_id, "2024-01-10T23:55:00Z")
        assert rejected.status_code == 409
        assert rejected.json()["detail"]["reason"] == "already logged today"

        assert log_dose(client, patient_headers, medication_id, "2024-01-11T00:05:00Z").status_code == 201

    def test_once_daily_in_patient_timezone(self, client, make_user, headers_for, medication_payload):
        headers = headers_for(make_user(timezone="America/Mexico_City"))
        medication = create_medication(client, headers, medication_payload(frequency="once_daily"))

        assert log_dose(client, headers, medication["id"], "2024-01-10T23:50:00Z").status_code == 201
        # Sigue siendo 10 de enero en Ciudad de México
        assert log_dose(client, headers, medication["id"], "2024-01-11T00:05:00Z").status_code == 409
        assert log_dose(client, headers, medication["id"], "2024-01-11T06:00:00Z").status_code == 201

    def test_as_needed_is_never_rejected(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        for minute in range(5):
            response = log_dose(client, patient_headers, medication["id"], f"2024-01-10T08:0{minute}:00Z")
            assert response.status_code == 201

    def test_can_log_does_not_record(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="twice_daily"))
        medication_id = medication["id"]
        log_dose(client, patient_headers, medication_id, "2024-01-10T08:00:00Z")

        for _ in range(2):
            response = client.get(
                f"/api/medications/{medication_id}/can-log",
                params={"taken_at": "2024-01-10T12:00:00Z"},
                headers=patient_headers
            )
            assert response.status_code == 200
            assert response.json()["allowed"] is False
            assert response.json()["reason"] == "interval not yet elapsed"

        allowed = client.get(
            f"/api/medications/{medication_id}/can-log",
            params={"taken_at": "2024-01-10T20:00:00Z"},
            headers=patient_headers
        ).json()
        assert allowed == {"allowed": True, "reason": None, "message": None, "next_allowed_at": None}

        logs = client.get(f"/api/medications/{medication_id}/logs", headers=patient_headers).json()
        assert logs["total"] == 1

    def test_pills_remaining_decrements(self, client, patient_headers, medication_payload, db_session):
        medication = create_medication(client, patient_headers, medication_payload(
            frequency="as_needed", pills_remaining=2
        ))

        log_dose(client, patient_headers, medication["id"], "2024-01-10T08:00:00Z")
        log_dose(client, patient_headers, medication["id"], "2024-01-10T09:00:00Z")
        log_dose(client, patient_headers, medication["id"], "2024-01-10T10:00:00Z")

        refreshed = client.get(f"/api/medications/{medication['id']}", headers=patient_headers).json()
        assert refreshed["pills_remaining"] == 0
        assert db_session.get(Medication, medication["id"]).pills_remaining == 0

    def test_soft_deleted_log_frees_the_interval(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        medication_id = medication["id"]

        log_id = log_dose(client, patient_headers, medication_id, "2024-01-10T08:00:00Z").json()["id"]
        assert log_dose(client, patient_headers, medication_id, "2024-01-10T09:00:00Z").status_code == 409

        response = client.delete(f"/api/medications/{medication_id}/logs/{log_id}", headers=patient_headers)
        assert response.status_code == 200
        assert client.delete(
            f"/api/medications/{medication_id}/logs/{log_id}", headers=patient_headers
        ).status_code == 404

        assert log_dose(client, patient_headers, medication_id, "2024-01-10T09:00:00Z").status_code == 201

    def test_logs_filtered_by_date(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        for taken_at in ("2024-01-09T08:00:00Z", "2024-01-10T08:00:00Z", "2024-01-11T08:00:00Z"):
            log_dose(client, patient_headers, medication["id"], taken_at)

        logs = client.get(
            f"/api/medications/{medication['id']}/logs",
            params={"start_date": "2024-01-10", "end_date": "2024-01-11"},
            headers=patient_headers
        ).json()
        assert logs["total"] == 2
        assert logs["logs"][0]["taken_at"].startswith("2024-01-11T08:00:00")

        bad = client.get(
            f"/api/medications/{medication['id']}/logs",
            params={"start_date": "10/01/2024"},
            headers=patient_headers
        )
        assert bad.status_code == 400

    def test_backdated_once_daily_dose_on_logged_day(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        medication_id = medication["id"]
        assert log_dose(client, patient_headers, medication_id, "2024-01-10T08:00:00Z").status_code == 201
        assert log_dose(client, patient_headers, medication_id, "2024-01-11T08:00:00Z").status_code == 201

        rejected = log_dose(client, patient_headers, medication_id, "2024-01-10T20:00:00Z")
        assert rejected.status_code == 409
        assert rejected.json()["detail"]["reason"] == "already logged today"

        # Un día sin registro sí se puede completar después
        assert log_dose(client, patient_headers, medication_id, "2024-01-09T20:00:00Z").status_code == 201

        logs = client.get(f"/api/medications/{medication_id}/logs", headers=patient_headers).json()
        days = [log["taken_at"][:10] for log in logs["logs"]]
        assert sorted(days) == ["2024-01-09", "2024-01-10", "2024-01-11"]

    def test_backfilled_interval_dose_checks_both_neighbors(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="twice_daily"))
        medication_id = medication["id"]
        assert log_dose(client, patient_headers, medication_id, "2024-01-10T08:00:00Z").status_code == 201
        assert log_dose(client, patient_headers, medication_id, "2024-01-11T08:00:00Z").status_code == 201

        # A menos de 12h de la dosis siguiente
        too_close = log_dose(client, patient_headers, medication_id, "2024-01-11T00:00:00Z")
        assert too_close.status_code == 409
        assert too_close.json()["detail"]["reason"] == "interval not yet elapsed"

        assert log_dose(client, patient_headers, medication_id, "2024-01-10T20:00:00Z").status_code == 201

        logs = client.get(f"/api/medications/{medication_id}/logs", headers=patient_headers).json()
        assert logs["total"] == 3

    def test_future_dose_is_rejected(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="twice_daily"))
        medication_id = medication["id"]
        future = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()

        assert log_dose(client, patient_headers, medication_id, future).status_code == 400
        response = client.get(
            f"/api/medications/{medication_id}/can-log",
            params={"taken_at": future},
            headers=patient_headers
        )
        assert response.status_code == 400

        logs = client.get(f"/api/medications/{medication_id}/logs", headers=patient_headers).json()
        assert logs["total"] == 0

        # Sin dosis futuras guardadas, la dosis de ahora no queda bloqueada
        assert log_dose(client, patient_headers, medication_id).status_code == 201

    def test_small_clock_skew_is_tolerated(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        slightly_ahead = (datetime.now(timezone.utc) + timedelta(minutes=1)).isoformat()
        assert log_dose(client, patient_headers, medication["id"], slightly_ahead).status_code == 201

    def test_can_log_on_inactive_medication(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload())
        client.delete(f"/api/medications/{medication['id']}", headers=patient_headers)

        response = client.get(f"/api/medications/{medication['id']}/can-log", headers=patient_headers)
        assert response.status_code == 404


class TestAdherenceEndpoints:

    def test_medication_adherence(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="twice_daily"))
        medication_id = medication["id"]
        for taken_at in ("2024-01-10T08:00:00Z", "2024-01-10T20:00:00Z", "2024-01-11T08:00:00Z"):
            assert log_dose(client, patient_headers, medication_id, taken_at).status_code == 201

        response = client.get(
            f"/api/medications/{medication_id}/adherence",
            params={"start_date": "2024-01-10", "end_date": "2024-01-11"},
            headers=patient_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["expected_doses"] == 4
        assert data["actual_doses"] == 3
        assert data["rate_percent"] == 75
        assert data["level"] == "fair"
        assert data["over_logged"] is False

    def test_as_needed_adherence_not_applicable(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        log_dose(client, patient_headers, medication["id"], "2024-01-10T08:00:00Z")

        data = client.get(
            f"/api/medications/{medication['id']}/adherence",
            params={"start_date": "2024-01-10", "end_date": "2024-01-16"},
            headers=patient_headers
        ).json()
        assert data["expected_doses"] is None
        assert data["rate_percent"] is None
        assert data["actual_doses"] == 1
        assert data["level"] == "not_applicable"

    def test_invalid_range(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload())
        response = client.get(
            f"/api/medications/{medication['id']}/adherence",
            params={"start_date": "2024-01-10", "end_date": "2024-01-01"},
            headers=patient_headers
        )
        assert response.status_code == 400

    def test_deleted_logs_do_not_count(self, client, patient_headers, medication_payload):
        medication = create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        log_id = log_dose(client, patient_headers, medication["id"], "2024-01-10T08:00:00Z").json()["id"]
        client.delete(f"/api/medications/{medication['id']}/logs/{log_id}", headers=patient_headers)

        data = client.get(
            f"/api/medications/{medication['id']}/adherence",
            params={"start_date": "2024-01-10", "end_date": "2024-01-10"},
            headers=patient_headers
        ).json()
        assert data["actual_doses"] == 0
        assert data["rate_percent"] == 0

    def test_summary(self, client, patient_headers, medication_payload):
        daily = create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        create_medication(client, patient_headers, medication_payload(frequency="as_needed"))
        assert log_dose(client, patient_headers, daily["id"]).status_code == 201

        response = client.get("/api/medications/adherence", params={"days": 7}, headers=patient_headers)
        assert response.status_code == 200
        summary = response.json()
        assert summary["days"] == 7
        assert summary["medications_counted"] == 1
        assert summary["expected_doses"] == 7
        assert summary["actual_doses"] == 1
        assert summary["rate_percent"] == 14
        assert summary["level"] == "poor"
        assert len(summary["medications"]) == 2

    def test_dashboard_summary(self, client, patient_headers, medication_payload):
        create_medication(client, patient_headers, medication_payload(frequency="once_daily"))
        client.post("/api/blood-pressure/", json={"systolic": 150, "diastolic": 95}, headers=patient_headers)

        response = client.get("/api/dashboard/summary", headers=patient_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["latestReading"]["systolic"] == 150
        assert data["bloodPressure"]["total_readings"] == 1
        assert data["adherence"]["expected_doses"] == 7
        assert "medications" not in data["adherence"]
        assert data["activeMedications"] == 1
        assert data["upcomingRefills"] == 0
