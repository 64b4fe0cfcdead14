"""
Tests de recursos educativos y asignaciones a pacientes
"""
import pytest

from bp_manager.models.user import UserRole


def resource_payload(**overrides):
    data = {
        "title": "Reducir la sal",
        "content": "Consejos para una dieta baja en sodio.",
        "category": "diet",
        "tags": ["sodio", "dieta"],
        "read_time": 5,
    }
    data.update(overrides)
    return data


def create_resource(client, headers, **overrides):
    response = client.post("/api/resources/", json=resource_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def own_patient(make_user, provider):
    return make_user(created_by_id=provider.id)


class TestResources:

    def test_patient_cannot_create(self, client, patient_headers):
        response = client.post("/api/resources/", json=resource_payload(), headers=patient_headers)
        assert response.status_code == 403

    def test_public_listing(self, client, provider, provider_headers):
        create_resource(client, provider_headers, title="Caminar 30 minutos", category="exercise")
        create_resource(client, provider_headers, featured=True)
        create_resource(client, provider_headers, title="Borrador", published=False)

        page = client.get("/api/resources/").json()
        assert page["total"] == 2
        assert page["resources"][0]["title"] == "Reducir la sal"
        assert page["resources"][0]["created_by_id"] == provider.id

        exercise = client.get("/api/resources/?category=exercise").json()
        assert [r["title"] for r in exercise["resources"]] == ["Caminar 30 minutos"]

    def test_search_covers_tags(self, client, provider_headers):
        create_resource(client, provider_headers)
        create_resource(client, provider_headers, title="Control en casa", content="Cómo medir la presión.",
                        category="hypertension", tags=["tensiometro"])

        by_tag = client.get("/api/resources/?search=tensiometro").json()
        assert [r["title"] for r in by_tag["resources"]] == ["Control en casa"]

        by_content = client.get("/api/resources/?search=SODIO").json()
        assert by_content["total"] == 1

    def test_categories(self, client, provider_headers):
        create_resource(client, provider_headers, category="exercise")
        create_resource(client, provider_headers, category="diet")
        create_resource(client, provider_headers, category="diet")
        create_resource(client, provider_headers, category="medication", published=False)

        assert client.get("/api/resources/categories").json() == ["diet", "exercise"]

    def test_view_increments_counter(self, client, provider_headers):
        resource = create_resource(client, provider_headers)

        client.get(f"/api/resources/{resource['id']}")
        second = client.get(f"/api/resources/{resource['id']}").json()
        assert second["views"] == 2

        draft = create_resource(client, provider_headers, published=False)
        assert client.get(f"/api/resources/{draft['id']}").status_code == 404

    def test_only_author_or_admin_can_edit(self, client, provider_headers, make_user, headers_for):
        resource = create_resource(client, provider_headers)
        other_provider = make_user(role=UserRole.PROVIDER)
        admin = make_user(role=UserRole.ADMIN)

        forbidden = client.put(
            f"/api/resources/{resource['id']}",
            json={"title": "Otro título"},
            headers=headers_for(other_provider)
        )
        assert forbidden.status_code == 403

        response = client.put(
            f"/api/resources/{resource['id']}",
            json={"featured": True},
            headers=headers_for(admin)
        )
        assert response.status_code == 200
        assert response.json()["featured"] is True
        assert response.json()["title"] == "Reducir la sal"
        assert response.json()["updated_by_id"] == admin.id

        assert client.put("/api/resources/999", json={"title": "X"}, headers=provider_headers).status_code == 404

    def test_delete_resource(self, client, provider_headers):
        resource = create_resource(client, provider_headers)

        assert client.delete(f"/api/resources/{resource['id']}", headers=provider_headers).status_code == 200
        assert client.get(f"/api/resources/{resource['id']}").status_code == 404


class TestAssignments:

    def assign(self, client, headers, resource_id, patient_id, **data):
        return client.post(f"/api/resources/assign/{resource_id}/{patient_id}", json=data, headers=headers)

    def test_assign_to_own_patient(self, client, provider, provider_headers, own_patient, headers_for):
        resource = create_resource(client, provider_headers)

        response = self.assign(client, provider_headers, resource["id"], own_patient.id,
                               priority="high", notes="Leer antes de la cita", due_date="2024-05-01")
        assert response.status_code == 201
        assignment = response.json()
        assert assignment["status"] == "assigned"
        assert assignment["provider_id"] == provider.id
        assert assignment["resource"]["title"] == "Reducir la sal"

        duplicate = self.assign(client, provider_headers, resource["id"], own_patient.id)
        assert duplicate.status_code == 400

        assigned = client.get("/api/resources/my-assigned", headers=headers_for(own_patient)).json()
        assert assigned["total"] == 1
        assert assigned["assignments"][0]["priority"] == "high"

    def test_cannot_assign_to_other_patients(self, client, provider_headers, patient):
        resource = create_resource(client, provider_headers)

        response = self.assign(client, provider_headers, resource["id"], patient.id)
        assert response.status_code == 404

    def test_cannot_assign_unpublished(self, client, provider_headers, own_patient):
        draft = create_resource(client, provider_headers, published=False)

        response = self.assign(client, provider_headers, draft["id"], own_patient.id)
        assert response.status_code == 404

    def test_patient_progress(self, client, provider_headers, own_patient, headers_for):
        resource = create_resource(client, provider_headers)
        assignment = self.assign(client, provider_headers, resource["id"], own_patient.id).json()
        patient_headers = headers_for(own_patient)

        viewed = client.put(
            f"/api/resources/assignment/{assignment['id']}/status",
            json={"status": "viewed"},
            headers=patient_headers
        ).json()
        assert viewed["viewed_at"] is not None
        assert viewed["completed_at"] is None

        completed = client.put(
            f"/api/resources/assignment/{assignment['id']}/status",
            json={"status": "completed"},
            headers=patient_headers
        ).json()
        assert completed["status"] == "completed"
        assert completed["completed_at"] is not None

        by_provider = client.put(
            f"/api/resources/assignment/{assignment['id']}/status",
            json={"status": "viewed"},
            headers=provider_headers
        )
        assert by_provider.status_code == 404

        done = client.get("/api/resources/my-assigned?status=completed", headers=patient_headers).json()
        assert done["total"] == 1
        pending = client.get("/api/resources/my-assigned?status=assigned", headers=patient_headers).json()
        assert pending["total"] == 0

    def test_provider_assignments(self, client, provider, provider_headers, own_patient, make_user):
        second_patient = make_user(created_by_id=provider.id)
        first = create_resource(client, provider_headers)
        second = create_resource(client, provider_headers, title="Ejercicio", category="exercise")

        self.assign(client, provider_headers, first["id"], own_patient.id)
        self.assign(client, provider_headers, second["id"], own_patient.id)
        self.assign(client, provider_headers, first["id"], second_patient.id)

        everything = client.get("/api/resources/my-assignments", headers=provider_headers).json()
        assert everything["total"] == 3

        for_patient = client.get(
            f"/api/resources/my-assignments?patient_id={second_patient.id}",
            headers=provider_headers
        ).json()
        assert for_patient["total"] == 1

    def test_remove_assignment(self, client, provider_headers, own_patient, headers_for):
        resource = create_resource(client, provider_headers)
        assignment = self.assign(client, provider_headers, resource["id"], own_patient.id).json()

        assert client.delete(
            f"/api/resources/assignment/{assignment['id']}",
            headers=headers_for(own_patient)
        ).status_code == 403
        assert client.delete(
            f"/api/resources/assignment/{assignment['id']}",
            headers=provider_headers
        ).status_code == 200

        assigned = client.get("/api/resources/my-assigned", headers=headers_for(own_patient)).json()
        assert assigned["total"] == 0

    def test_deleting_resource_removes_assignments(self, client, provider_headers, own_patient, headers_for):
        resource = create_resource(client, provider_headers)
        self.assign(client, provider_headers, resource["id"], own_patient.id)

        client.delete(f"/api/resources/{resource['id']}", headers=provider_headers)

        assigned = client.get("/api/resources/my-assigned", headers=headers_for(own_patient)).json()
        assert assigned["total"] == 0
