"""
Tests de actividades de estilo de vida
"""


def post_activity(client, headers, type="exercise", date="2024-03-10T18:00:00Z", **data):
    payload = {"type": type, "date": date, "data": data or {"duration": 30}}
    response = client.post("/api/activities/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestActivities:

    def test_create_and_get(self, client, patient, patient_headers):
        activity = post_activity(client, patient_headers, duration=45, calories=300, kind="caminata")

        assert activity["user_id"] == patient.id
        assert activity["type"] == "exercise"
        assert activity["data"]["kind"] == "caminata"

        fetched = client.get(f"/api/activities/{activity['id']}", headers=patient_headers)
        assert fetched.status_code == 200
        assert fetched.json()["data"]["calories"] == 300

    def test_invalid_payloads(self, client, patient_headers):
        empty = client.post(
            "/api/activities/",
            json={"type": "diet", "date": "2024-03-10T08:00:00Z", "data": {}},
            headers=patient_headers
        )
        assert empty.status_code == 422

        negative = client.post(
            "/api/activities/",
            json={"type": "exercise", "date": "2024-03-10T08:00:00Z", "data": {"duration": -5}},
            headers=patient_headers
        )
        assert negative.status_code == 422

        unknown_type = client.post(
            "/api/activities/",
            json={"type": "yoga", "date": "2024-03-10T08:00:00Z", "data": {"duration": 5}},
            headers=patient_headers
        )
        assert unknown_type.status_code == 422

    def test_list_filters(self, client, patient_headers):
        post_activity(client, patient_headers, date="2024-03-01T10:00:00Z", duration=20)
        post_activity(client, patient_headers, type="weight", date="2024-03-05T10:00:00Z", weight=82.5)
        post_activity(client, patient_headers, date="2024-03-09T10:00:00Z", duration=40)

        page = client.get("/api/activities/", headers=patient_headers).json()
        assert page["total"] == 3
        assert page["activities"][0]["date"].startswith("2024-03-09")

        exercises = client.get("/api/activities/?type=exercise", headers=patient_headers).json()
        assert exercises["total"] == 2

        ranged = client.get(
            "/api/activities/?start_date=2024-03-04&end_date=2024-03-06",
            headers=patient_headers
        ).json()
        assert ranged["total"] == 1
        assert ranged["activities"][0]["type"] == "weight"

    def test_update_replaces_activity(self, client, patient_headers):
        activity = post_activity(client, patient_headers, duration=20)

        response = client.put(
            f"/api/activities/{activity['id']}",
            json={"type": "stress_reduction", "date": "2024-03-11T07:00:00Z",
                  "data": {"duration": 15, "technique": "respiración"}, "notes": "Antes del trabajo"},
            headers=patient_headers
        )
        assert response.status_code == 200
        updated = response.json()
        assert updated["type"] == "stress_reduction"
        assert updated["data"] == {"duration": 15, "technique": "respiración"}
        assert updated["notes"] == "Antes del trabajo"

    def test_other_users_activity_is_hidden(self, client, patient_headers, make_user, headers_for):
        activity = post_activity(client, patient_headers)
        other = headers_for(make_user())

        assert client.get(f"/api/activities/{activity['id']}", headers=other).status_code == 404
        assert client.delete(f"/api/activities/{activity['id']}", headers=other).status_code == 404

    def test_delete(self, client, patient_headers):
        activity = post_activity(client, patient_headers)

        assert client.delete(f"/api/activities/{activity['id']}", headers=patient_headers).status_code == 200
        assert client.get(f"/api/activities/{activity['id']}", headers=patient_headers).status_code == 404


class TestActivityStats:

    def test_stats_by_type(self, client, patient_headers):
        post_activity(client, patient_headers, duration=30, calories=200)
        post_activity(client, patient_headers, duration=45, calories=350)
        post_activity(client, patient_headers, type="weight", weight=80)
        post_activity(client, patient_headers, type="weight", weight=79)

        stats = client.get("/api/activities/stats", headers=patient_headers).json()
        by_type = {item["type"]: item for item in stats}

        assert set(by_type) == {"exercise", "weight"}
        assert by_type["exercise"]["count"] == 2
        assert by_type["exercise"]["avg_duration"] == 37.5
        assert by_type["exercise"]["total_calories"] == 550
        assert by_type["weight"]["avg_weight"] == 79.5
        assert by_type["weight"]["avg_duration"] is None

    def test_stats_type_filter(self, client, patient_headers):
        post_activity(client, patient_headers, duration=30)
        post_activity(client, patient_headers, type="diet", meal="desayuno", calories=400)

        stats = client.get("/api/activities/stats?type=diet", headers=patient_headers).json()
        assert len(stats) == 1
        assert stats[0]["total_calories"] == 400
