from datetime import date

from fitstudio.models import Booking, BookingStatus, SessionGroup
from fitstudio.ratelimit import InMemoryRateLimiter, set_rate_limiter

MISSING_ID = "01HF4G12ABCDEF3456789XYZAB"

BOOKINGS_URL = "/api/v1/bookings"


def _guest_payload(slot, **extra):
    return {"time_slot_id": slot.id, "guest_name": "Achieng", "guest_phone": "+254722000000", **extra}


class TestCreateBookingRoute:
    def test_guest_booking_created(self, client, factory):
        slot = factory.class_slot(category="yoga", capacity=20)

        response = client.post(BOOKINGS_URL, json=_guest_payload(slot))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "booked"
        assert body["group_number"] == 0
        assert body["group_label"] == "A"
        assert body["schedule_id"] == slot.schedule_id
        assert body["session_date"] == "2025-03-14"
        assert body["start_time"] == "07:00:00"
        assert body["user_id"] is None
        assert "X-RateLimit-Limit" in response.headers

    def test_instant_mpesa_booking_is_completed(self, client, factory, auth_headers):
        member = factory.user("client")
        slot = factory.class_slot()

        response = client.post(
            BOOKINGS_URL,
            json={
                "time_slot_id": slot.id,
                "user_id": member.id,
                "payment_method": "MPESA",
                "payment_reference": "QFT12345",
            },
            headers=auth_headers(member),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "completed"

    def test_guest_without_phone_is_problem_400(self, client, factory):
        slot = factory.class_slot()

        response = client.post(BOOKINGS_URL, json=_guest_payload(slot, guest_phone=""))

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("application/problem+json")
        problem = response.json()
        assert problem["title"] == "Bad Request"
        assert problem["code"] == "GUEST_DETAILS_REQUIRED"
        assert problem["detail"] == "Guest bookings require name and phone number"
        assert problem["errors"] == {"missing": ["guest_phone"]}
        assert problem["instance"] == BOOKINGS_URL

    def test_unknown_slot_is_404(self, client):
        response = client.post(
            BOOKINGS_URL, json={"time_slot_id": MISSING_ID, "guest_name": "G", "guest_phone": "1"}
        )

        assert response.status_code == 404

    def test_cancelled_schedule_is_409(self, client, factory):
        schedule = factory.schedule(status="cancelled")
        slot = factory.slot(schedule, factory.studio_session())

        response = client.post(BOOKINGS_URL, json=_guest_payload(slot))

        assert response.status_code == 409
        assert response.json()["code"] == "SCHEDULE_CANCELLED"

    def test_unknown_field_is_422(self, client, factory):
        slot = factory.class_slot()

        response = client.post(BOOKINGS_URL, json=_guest_payload(slot, seat=4))

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_client_cannot_book_for_someone_else(self, client, factory, auth_headers):
        member = factory.user("client")
        other = factory.user("client")
        slot = factory.class_slot()

        response = client.post(
            BOOKINGS_URL,
            json={"time_slot_id": slot.id, "user_id": other.id},
            headers=auth_headers(member),
        )

        assert response.status_code == 403

    def test_unknown_acting_user_is_401(self, client, factory):
        slot = factory.class_slot()

        response = client.post(
            BOOKINGS_URL, json=_guest_payload(slot), headers={"X-User-Id": MISSING_ID}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_booking_bucket_is_rate_limited(self, client, factory):
        set_rate_limiter(InMemoryRateLimiter({"booking": dict(rate_per_min=1, burst=0)}))
        slot = factory.class_slot()

        first = client.post(BOOKINGS_URL, json=_guest_payload(slot))
        second = client.post(BOOKINGS_URL, json=_guest_payload(slot, guest_name="Second"))

        assert first.status_code == 201
        assert second.status_code == 429
        assert int(second.headers["Retry-After"]) >= 1
        problem = second.json()
        assert problem["code"] == "RATE_LIMITED"
        assert problem["errors"]["bucket"] == "booking"


class TestReadRoutes:
    def test_list_requires_acting_user(self, client):
        response = client.get(BOOKINGS_URL)

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")

    def test_client_lists_own_bookings(self, client, factory, auth_headers):
        member = factory.user("client")
        slot = factory.class_slot()
        mine = factory.booking(slot, user=member)
        factory.booking(slot)

        response = client.get(BOOKINGS_URL, headers=auth_headers(member))

        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == [mine.id]

    def test_status_filter_must_be_known(self, client, factory, auth_headers):
        response = client.get(
            BOOKINGS_URL, params={"status": "attended"}, headers=auth_headers(factory.user("admin"))
        )

        assert response.status_code == 422

    def test_get_booking(self, client, factory, auth_headers):
        member = factory.user("client")
        booking = factory.booking(factory.class_slot(), user=member)

        response = client.get(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(member))

        assert response.status_code == 200
        assert response.json()["id"] == booking.id

    def test_get_someone_elses_booking_is_403(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot(), user=factory.user("client"))

        response = client.get(
            f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(factory.user("client"))
        )

        assert response.status_code == 403

    def test_missing_booking_is_404(self, client, factory, auth_headers):
        response = client.get(f"{BOOKINGS_URL}/{MISSING_ID}", headers=auth_headers(factory.user("admin")))

        assert response.status_code == 404
        assert response.json()["status"] == 404

    def test_malformed_id_is_422(self, client, factory, auth_headers):
        response = client.get(f"{BOOKINGS_URL}/not-a-ulid", headers=auth_headers(factory.user("admin")))

        assert response.status_code == 422


class TestStatusAndPaymentRoutes:
    def test_manager_completes_booking(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot(), user=factory.user("client"))

        response = client.patch(
            f"{BOOKINGS_URL}/{booking.id}/status",
            json={"status": "completed"},
            headers=auth_headers(factory.user("manager")),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_client_cannot_change_status(self, client, factory, auth_headers):
        member = factory.user("client")
        booking = factory.booking(factory.class_slot(), user=member)

        response = client.patch(
            f"{BOOKINGS_URL}/{booking.id}/status",
            json={"status": "completed"},
            headers=auth_headers(member),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_invalid_transition_is_409(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot(), status=BookingStatus.MISSED)

        response = client.patch(
            f"{BOOKINGS_URL}/{booking.id}/status",
            json={"status": "cancelled"},
            headers=auth_headers(factory.user("admin")),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_confirmation_without_reference_is_400(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot(), status=BookingStatus.MISSED)

        response = client.patch(
            f"{BOOKINGS_URL}/{booking.id}/status",
            json={"status": "booked"},
            headers=auth_headers(factory.user("admin")),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "PAYMENT_REFERENCE_REQUIRED"

    def test_confirm_payment(self, client, factory):
        booking = factory.booking(factory.class_slot())

        response = client.post(
            f"{BOOKINGS_URL}/{booking.id}/confirm-payment", json={"payment_reference": "ok-991"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["verified"] is True
        assert body["booking"]["status"] == "completed"
        assert body["booking"]["payment_reference"] == "ok-991"

    def test_confirm_payment_without_body(self, client, factory):
        booking = factory.booking(factory.class_slot())

        response = client.post(f"{BOOKINGS_URL}/{booking.id}/confirm-payment")

        assert response.status_code == 200
        assert response.json()["verified"] is False


class TestCancelAndDeleteRoutes:
    def test_client_cancels_future_class(self, client, db, factory, auth_headers, future_day):
        member = factory.user("client")
        slot = factory.class_slot(on=future_day)
        created = client.post(
            BOOKINGS_URL,
            json={"time_slot_id": slot.id, "user_id": member.id},
            headers=auth_headers(member),
        ).json()

        response = client.post(f"{BOOKINGS_URL}/{created['id']}/cancel", headers=auth_headers(member))

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        group = db.get(SessionGroup, created["group_id"], populate_existing=True)
        assert group.current_count == 0

    def test_client_inside_window_gets_409(self, client, factory, auth_headers):
        member = factory.user("client")
        booking = factory.booking(factory.class_slot(on=date(2025, 3, 14)), user=member)

        response = client.post(f"{BOOKINGS_URL}/{booking.id}/cancel", headers=auth_headers(member))

        assert response.status_code == 409
        problem = response.json()
        assert problem["code"] == "CANCELLATION_WINDOW_CLOSED"
        assert problem["detail"] == "Sorry, you can only cancel 24 hrs prior."

    def test_trainer_cannot_cancel(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot())

        response = client.post(
            f"{BOOKINGS_URL}/{booking.id}/cancel", headers=auth_headers(factory.user("trainer"))
        )

        assert response.status_code == 403

    def test_admin_deletes(self, client, db, factory, auth_headers):
        booking = factory.booking(factory.class_slot())

        response = client.delete(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(factory.user("admin")))

        assert response.status_code == 204
        assert db.get(Booking, booking.id, populate_existing=True) is None

    def test_manager_cannot_delete(self, client, factory, auth_headers):
        booking = factory.booking(factory.class_slot())

        response = client.delete(
            f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(factory.user("manager"))
        )

        assert response.status_code == 403
