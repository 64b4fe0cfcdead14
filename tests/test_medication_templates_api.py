"""
Tests de plantillas de medicamento
"""
from datetime import date

import pytest

from bp_manager.models.medication_template import DurationUnit
from bp_manager.models.user import UserRole
from bp_manager.services.medication_template_service import template_end_date


def template_payload(**overrides):
    data = {
        "name": "Enalapril 10",
        "description": "Inicio de tratamiento antihipertensivo",
        "dosage_amount": 10,
        "dosage_unit": "mg",
        "frequency": "once_daily",
        "category": "hypertension",
        "common_side_effects": ["tos seca", "mareo"],
        "default_duration_amount": 2,
        "default_duration_unit": "weeks",
    }
    data.update(overrides)
    return data


def create_template(client, headers, **overrides):
    response = client.post("/api/medication-templates/", json=template_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def admin_headers(make_user, headers_for):
    return headers_for(make_user(role=UserRole.ADMIN))


class _Template:
    def __init__(self, amount, unit):
        self.default_duration_amount = amount
        self.default_duration_unit = unit


@pytest.mark.parametrize("amount, unit, expected", [
    (10, DurationUnit.DAYS, date(2024, 1, 10)),
    (2, DurationUnit.WEEKS, date(2024, 1, 14)),
    (1, DurationUnit.MONTHS, date(2024, 1, 30)),
    (None, None, None),
])
def test_template_end_date(amount, unit, expected):
    assert template_end_date(_Template(amount, unit), date(2024, 1, 1)) == expected


class TestTemplates:

    def test_create_private_template(self, client, provider, provider_headers):
        template = create_template(client, provider_headers)

        assert template["provider_id"] == provider.id
        assert template["provider_name"] == provider.full_name
        assert template["approval_status"] == "pending"
        assert template["is_public"] is False
        assert template["usage_count"] == 0

    def test_patient_cannot_create(self, client, patient_headers):
        response = client.post("/api/medication-templates/", json=template_payload(), headers=patient_headers)
        assert response.status_code == 403

    def test_validation(self, client, provider_headers):
        custom_without_schedule = client.post(
            "/api/medication-templates/",
            json=template_payload(frequency="custom"),
            headers=provider_headers
        )
        assert custom_without_schedule.status_code == 422

        duration_without_unit = client.post(
            "/api/medication-templates/",
            json=template_payload(default_duration_unit=None),
            headers=provider_headers
        )
        assert duration_without_unit.status_code == 422

    def test_categories(self, client, patient_headers):
        categories = client.get("/api/medication-templates/categories", headers=patient_headers).json()
        assert {"value": "hypertension", "label": "Hipertensión"} in categories
        assert len(categories) == 10

    def test_visibility(self, client, provider_headers, make_user, headers_for, admin_headers):
        private = create_template(client, provider_headers, name="Privada")
        public = create_template(client, provider_headers, name="Pública", is_public=True)
        other_provider = headers_for(make_user(role=UserRole.PROVIDER))

        # Pendiente de aprobación: solo la ve su autor
        assert client.get("/api/medication-templates/public", headers=other_provider).json()["total"] == 0
        assert client.get(f"/api/medication-templates/{public['id']}", headers=other_provider).status_code == 404

        client.post(
            f"/api/medication-templates/{public['id']}/approve",
            json={"action": "approve"},
            headers=admin_headers
        )

        listing = client.get("/api/medication-templates/provider", headers=other_provider).json()
        assert [t["name"] for t in listing["templates"]] == ["Pública"]
        assert client.get(f"/api/medication-templates/{private['id']}", headers=other_provider).status_code == 404

        own = client.get("/api/medication-templates/provider", headers=provider_headers).json()
        assert own["total"] == 2

    def test_search_and_category_filters(self, client, provider_headers):
        create_template(client, provider_headers)
        create_template(client, provider_headers, name="Metformina", category="diabetes", description=None)

        by_name = client.get("/api/medication-templates/provider?search=metf", headers=provider_headers).json()
        assert [t["name"] for t in by_name["templates"]] == ["Metformina"]

        by_category = client.get(
            "/api/medication-templates/provider?category=hypertension",
            headers=provider_headers
        ).json()
        assert by_category["total"] == 1

    def test_update_public_template_returns_to_review(self, client, provider_headers, admin_headers):
        template = create_template(client, provider_headers, is_public=True)
        client.post(
            f"/api/medication-templates/{template['id']}/approve",
            json={"action": "approve"},
            headers=admin_headers
        )

        response = client.put(
            f"/api/medication-templates/{template['id']}",
            json=template_payload(is_public=True, dosage_amount=20),
            headers=provider_headers
        )
        assert response.status_code == 200
        updated = response.json()
        assert updated["dosage_amount"] == 20
        assert updated["approval_status"] == "pending"
        assert updated["approved_by_id"] is None

    def test_only_owner_can_modify(self, client, provider_headers, make_user, headers_for):
        template = create_template(client, provider_headers)
        other_provider = headers_for(make_user(role=UserRole.PROVIDER))

        response = client.put(
            f"/api/medication-templates/{template['id']}",
            json=template_payload(),
            headers=other_provider
        )
        assert response.status_code == 404
        assert client.delete(
            f"/api/medication-templates/{template['id']}",
            headers=other_provider
        ).status_code == 404

    def test_delete_deactivates(self, client, provider_headers):
        template = create_template(client, provider_headers)

        assert client.delete(
            f"/api/medication-templates/{template['id']}",
            headers=provider_headers
        ).status_code == 200
        assert client.get(
            f"/api/medication-templates/{template['id']}",
            headers=provider_headers
        ).status_code == 404


class TestApproval:

    def test_pending_queue_and_review(self, client, provider_headers, admin_headers):
        first = create_template(client, provider_headers, name="Primera", is_public=True)
        second = create_template(client, provider_headers, name="Segunda", is_public=True)
        create_template(client, provider_headers, name="Privada")

        pending = client.get("/api/medication-templates/pending", headers=admin_headers).json()
        assert pending["total"] == 2

        approved = client.post(
            f"/api/medication-templates/{first['id']}/approve",
            json={"action": "approve"},
            headers=admin_headers
        ).json()
        assert approved["approval_status"] == "approved"
        assert approved["approved_at"] is not None

        rejected = client.post(
            f"/api/medication-templates/{second['id']}/approve",
            json={"action": "reject"},
            headers=admin_headers
        ).json()
        assert rejected["approval_status"] == "rejected"

        assert client.get("/api/medication-templates/pending", headers=admin_headers).json()["total"] == 0

        public = client.get("/api/medication-templates/public", headers=provider_headers).json()
        assert [t["name"] for t in public["templates"]] == ["Primera"]

    def test_review_requires_admin_and_pending(self, client, provider_headers, admin_headers):
        template = create_template(client, provider_headers, is_public=True)
        private = create_template(client, provider_headers)

        assert client.get("/api/medication-templates/pending", headers=provider_headers).status_code == 403
        assert client.post(
            f"/api/medication-templates/{template['id']}/approve",
            json={"action": "approve"},
            headers=provider_headers
        ).status_code == 403

        invalid = client.post(
            f"/api/medication-templates/{template['id']}/approve",
            json={"action": "maybe"},
            headers=admin_headers
        )
        assert invalid.status_code == 422

        not_public = client.post(
            f"/api/medication-templates/{private['id']}/approve",
            json={"action": "approve"},
            headers=admin_headers
        )
        assert not_public.status_code == 404


class TestPrescribeFromTemplate:

    def test_prescribe_to_own_patient(self, client, provider, provider_headers, make_user, headers_for):
        own_patient = make_user(created_by_id=provider.id)
        template = create_template(client, provider_headers)

        response = client.post(
            f"/api/medication-templates/{template['id']}/prescribe",
            json={"patient_id": own_patient.id, "start_date": "2024-02-01", "pills_remaining": 14},
            headers=provider_headers
        )
        assert response.status_code == 201, response.text
        medication = response.json()
        assert medication["patient_id"] == own_patient.id
        assert medication["name"] == "Enalapril 10"
        assert medication["end_date"] == "2024-02-14"
        assert medication["side_effects"] == ["tos seca", "mareo"]
        assert medication["prescribed_by_id"] == provider.id

        medications = client.get("/api/medications/", headers=headers_for(own_patient)).json()
        assert len(medications) == 1

        refreshed = client.get(f"/api/medication-templates/{template['id']}", headers=provider_headers).json()
        assert refreshed["usage_count"] == 1

    def test_prescribe_to_other_patient(self, client, provider_headers, patient):
        template = create_template(client, provider_headers)

        response = client.post(
            f"/api/medication-templates/{template['id']}/prescribe",
            json={"patient_id": patient.id, "start_date": "2024-02-01"},
            headers=provider_headers
        )
        assert response.status_code == 404

    def test_invalid_date_range(self, client, provider, provider_headers, make_user):
        own_patient = make_user(created_by_id=provider.id)
        template = create_template(client, provider_headers)

        response = client.post(
            f"/api/medication-templates/{template['id']}/prescribe",
            json={"patient_id": own_patient.id, "start_date": "2024-02-10", "end_date": "2024-02-01"},
            headers=provider_headers
        )
        assert response.status_code == 400
