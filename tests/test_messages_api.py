"""
Tests de mensajería entre pacientes y proveedores
"""


def send(client, headers, receiver_id, subject="Consulta", body="¿Puedo tomar la dosis con comida?", **extra):
    payload = {"receiver_id": receiver_id, "subject": subject, "body": body}
    payload.update(extra)
    response = client.post("/api/messages/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestSendMessage:

    def test_send_message(self, client, patient, provider, patient_headers):
        message = send(client, patient_headers, provider.id, priority="high")

        assert message["sender_id"] == patient.id
        assert message["receiver_id"] == provider.id
        assert message["priority"] == "high"
        assert message["is_read"] is False
        assert message["receiver"]["role"] == "PROVIDER"

    def test_unknown_receiver(self, client, patient_headers):
        response = client.post(
            "/api/messages/",
            json={"receiver_id": 999, "subject": "Hola", "body": "Hola"},
            headers=patient_headers
        )
        assert response.status_code == 404

    def test_cannot_message_self(self, client, patient, patient_headers):
        response = client.post(
            "/api/messages/",
            json={"receiver_id": patient.id, "subject": "Nota", "body": "Recordatorio"},
            headers=patient_headers
        )
        assert response.status_code == 400

    def test_blank_body_is_rejected(self, client, provider, patient_headers):
        response = client.post(
            "/api/messages/",
            json={"receiver_id": provider.id, "subject": "Hola", "body": "   "},
            headers=patient_headers
        )
        assert response.status_code == 422


class TestMailbox:

    def test_inbox_sent_and_unread(self, client, patient, provider, patient_headers, provider_headers):
        send(client, patient_headers, provider.id, subject="Primera")
        send(client, patient_headers, provider.id, subject="Segunda")
        send(client, provider_headers, patient.id, subject="Respuesta")

        inbox = client.get("/api/messages/?box=inbox", headers=provider_headers).json()
        assert inbox["total"] == 2
        assert inbox["messages"][0]["subject"] == "Segunda"

        sent = client.get("/api/messages/?box=sent", headers=provider_headers).json()
        assert [m["subject"] for m in sent["messages"]] == ["Respuesta"]

        everything = client.get("/api/messages/", headers=provider_headers).json()
        assert everything["total"] == 3

        unread = client.get("/api/messages/?box=inbox&unread=true", headers=provider_headers).json()
        assert unread["total"] == 2

        count = client.get("/api/messages/unread-count", headers=provider_headers).json()
        assert count["unread"] == 2

    def test_invalid_box(self, client, patient_headers):
        assert client.get("/api/messages/?box=archive", headers=patient_headers).status_code == 400

    def test_mark_as_read_only_by_receiver(self, client, provider, patient_headers, provider_headers):
        message = send(client, patient_headers, provider.id)

        by_sender = client.put(f"/api/messages/{message['id']}/read", headers=patient_headers)
        assert by_sender.status_code == 404

        response = client.put(f"/api/messages/{message['id']}/read", headers=provider_headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True
        assert response.json()["read_at"] is not None

        count = client.get("/api/messages/unread-count", headers=provider_headers).json()
        assert count["unread"] == 0

    def test_outsider_cannot_see_message(self, client, provider, patient_headers, make_user, headers_for):
        message = send(client, patient_headers, provider.id)
        outsider = make_user()

        response = client.get(f"/api/messages/{message['id']}", headers=headers_for(outsider))
        assert response.status_code == 404
        assert client.get(f"/api/messages/{message['id']}", headers=patient_headers).status_code == 200

    def test_delete_message(self, client, provider, patient_headers, provider_headers):
        message = send(client, patient_headers, provider.id)

        assert client.delete(f"/api/messages/{message['id']}", headers=provider_headers).status_code == 200
        assert client.get(f"/api/messages/{message['id']}", headers=patient_headers).status_code == 404
        assert client.delete(f"/api/messages/{message['id']}", headers=patient_headers).status_code == 404


class TestConversations:

    def test_one_entry_per_counterpart(self, client, patient, provider, patient_headers, provider_headers,
                                       make_user, headers_for):
        other_patient = make_user()

        send(client, patient_headers, provider.id, subject="Mareos")
        send(client, provider_headers, patient.id, subject="Re: Mareos")
        send(client, headers_for(other_patient), provider.id, subject="Receta")

        conversations = client.get("/api/messages/conversations", headers=provider_headers).json()
        assert len(conversations) == 2

        latest = conversations[0]
        assert latest["other_user"]["id"] == other_patient.id
        assert latest["unread_count"] == 1

        with_patient = conversations[1]
        assert with_patient["other_user"]["id"] == patient.id
        assert with_patient["last_message"]["subject"] == "Re: Mareos"
        assert with_patient["unread_count"] == 1

        patient_view = client.get("/api/messages/conversations", headers=patient_headers).json()
        assert len(patient_view) == 1
        assert patient_view[0]["unread_count"] == 1
