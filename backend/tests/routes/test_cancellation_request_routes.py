from fitstudio.models import Booking, BookingStatus

REQUESTS_URL = "/api/v1/cancellation-requests"
MISSING_ID = "01HF4G12ABCDEF3456789XYZAB"


def _file_request(client, booking, member, auth_headers, message="Travelling"):
    return client.post(
        REQUESTS_URL,
        json={"booking_id": booking.id, "message": message},
        headers=auth_headers(member),
    )


def test_client_files_request(client, factory, auth_headers):
    member = factory.user("client")
    booking = factory.booking(factory.class_slot(), user=member)

    response = _file_request(client, booking, member, auth_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["booking_id"] == booking.id
    assert body["requester_id"] == member.id


def test_request_for_another_clients_booking_is_403(client, factory, auth_headers):
    booking = factory.booking(factory.class_slot(), user=factory.user("client"))

    response = _file_request(client, booking, factory.user("client"), auth_headers)

    assert response.status_code == 403
    assert response.json()["code"] == "NOT_BOOKING_OWNER"


def test_request_for_missing_booking_is_404(client, factory, auth_headers):
    response = client.post(
        REQUESTS_URL,
        json={"booking_id": MISSING_ID},
        headers=auth_headers(factory.user("client")),
    )

    assert response.status_code == 404


def test_admin_approves_and_booking_is_cancelled(client, db, factory, auth_headers):
    member = factory.user("client")
    booking = factory.booking(factory.class_slot(), user=member)
    request_id = _file_request(client, booking, member, auth_headers).json()["id"]
    admin = factory.user("admin")

    response = client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approver_id"] == admin.id
    assert db.get(Booking, booking.id, populate_existing=True).status == BookingStatus.CANCELLED.value


def test_second_decision_is_409(client, factory, auth_headers):
    member = factory.user("client")
    booking = factory.booking(factory.class_slot(), user=member)
    request_id = _file_request(client, booking, member, auth_headers).json()["id"]
    admin_headers = auth_headers(factory.user("admin"))
    client.post(f"{REQUESTS_URL}/{request_id}/reject", headers=admin_headers)

    response = client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "REQUEST_ALREADY_DECIDED"


def test_reject_with_reason(client, factory, auth_headers):
    member = factory.user("client")
    booking = factory.booking(factory.class_slot(), user=member)
    request_id = _file_request(client, booking, member, auth_headers).json()["id"]

    response = client.post(
        f"{REQUESTS_URL}/{request_id}/reject",
        json={"reason": "Too late"},
        headers=auth_headers(factory.user("admin")),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["message"] == "Travelling\n[Admin note] Too late"


def test_manager_lists_but_cannot_decide(client, factory, auth_headers):
    member = factory.user("client")
    booking = factory.booking(factory.class_slot(), user=member)
    request_id = _file_request(client, booking, member, auth_headers).json()["id"]
    manager_headers = auth_headers(factory.user("manager"))

    listed = client.get(REQUESTS_URL, params={"status": "pending"}, headers=manager_headers)
    decided = client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=manager_headers)

    assert listed.status_code == 200
    assert [r["id"] for r in listed.json()] == [request_id]
    assert decided.status_code == 403


def test_clients_cannot_list(client, factory, auth_headers):
    response = client.get(REQUESTS_URL, headers=auth_headers(factory.user("client")))

    assert response.status_code == 403


def test_unknown_request_is_404(client, factory, auth_headers):
    response = client.post(
        f"{REQUESTS_URL}/{MISSING_ID}/approve", headers=auth_headers(factory.user("admin"))
    )

    assert response.status_code == 404
