from datetime import time

import pytest

from fitstudio.core.exceptions import (
    ConflictException,
    NotFoundException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from fitstudio.core.schedule_lock import holds_schedule_lock
from fitstudio.models import Booking, BookingStatus, Notification, SessionGroup
from fitstudio.schemas.booking import BookingCreate


def _groups(db, schedule_id):
    return (
        db.query(SessionGroup)
        .filter(SessionGroup.schedule_id == schedule_id)
        .order_by(SessionGroup.group_number)
        .all()
    )


class TestGuestAndRegisteredAdmission:
    def test_guest_booking_takes_first_seat(self, db, factory, booking_service, guest_data):
        slot = factory.class_slot(category="yoga", capacity=20)

        booking = booking_service.create_booking(BookingCreate(**guest_data(slot)))

        assert booking.id
        assert booking.status == BookingStatus.BOOKED.value
        assert booking.user_id is None
        assert booking.guest_name == "Achieng"
        assert booking.schedule_id == slot.schedule_id
        assert booking.group.group_number == 0
        assert booking.group.current_count == 1

    def test_registered_booking_ignores_guest_fields(self, factory, booking_service):
        client = factory.user("client", full_name="Baraka Otieno")
        slot = factory.class_slot()

        booking = booking_service.create_booking(
            BookingCreate(time_slot_id=slot.id, user_id=client.id, guest_name="Someone Else")
        )

        assert booking.user_id == client.id
        assert booking.guest_name is None
        assert booking.client_display_name == "Baraka Otieno"

    def test_inactive_user_cannot_book(self, factory, booking_service):
        client = factory.user("client", is_active=False)
        slot = factory.class_slot()

        with pytest.raises(NotFoundException):
            booking_service.create_booking(BookingCreate(time_slot_id=slot.id, user_id=client.id))

    def test_guest_without_name_or_phone(self, factory, booking_service, guest_data):
        slot = factory.class_slot()

        with pytest.raises(ValidationException):
            booking_service.create_booking(BookingCreate(**guest_data(slot, phone=None)))

    def test_unknown_slot(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.create_booking(
                BookingCreate(time_slot_id="01HF4G12ABCDEF3456789XYZAB", guest_name="G", guest_phone="1")
            )

    def test_cancelled_schedule_rejects_admission(self, db, factory, booking_service, guest_data):
        session = factory.studio_session()
        schedule = factory.schedule(status="cancelled")
        slot = factory.slot(schedule, session)

        with pytest.raises(ConflictException):
            booking_service.create_booking(BookingCreate(**guest_data(slot)))

        assert _groups(db, schedule.id) == []


class TestCapacityGroups:
    def test_yoga_morning_class_splits_twelve_guests_ten_and_two(
        self, db, factory, booking_service, guest_data
    ):
        slot = factory.class_slot(category="yoga", capacity=20, start=time(7, 0))

        bookings = [
            booking_service.create_booking(BookingCreate(**guest_data(slot, name=f"Guest {i}")))
            for i in range(12)
        ]

        groups = _groups(db, slot.schedule_id)
        assert [(g.group_number, g.capacity, g.current_count) for g in groups] == [
            (0, 10, 10),
            (1, 10, 2),
        ]
        assert [b.group.group_number for b in bookings] == [0] * 10 + [1] * 2

    def test_pilates_limited_to_five(self, db, factory, booking_service, guest_data):
        slot = factory.class_slot(category="pilates", capacity=8)

        for i in range(6):
            booking_service.create_booking(BookingCreate(**guest_data(slot, name=f"P{i}")))

        groups = _groups(db, slot.schedule_id)
        assert [(g.capacity, g.current_count) for g in groups] == [(5, 5), (5, 1)]

    def test_small_session_capacity_below_category_limit(self, db, factory, booking_service, guest_data):
        slot = factory.class_slot(category="yoga", capacity=3)

        for i in range(4):
            booking_service.create_booking(BookingCreate(**guest_data(slot, name=f"Y{i}")))

        assert [g.current_count for g in _groups(db, slot.schedule_id)] == [3, 1]

    def test_uncapped_category_without_capacity_seats_one_per_group(
        self, db, factory, booking_service, guest_data
    ):
        slot = factory.class_slot(category="strength_training", capacity=None)

        for i in range(3):
            booking_service.create_booking(BookingCreate(**guest_data(slot, name=f"S{i}")))

        groups = _groups(db, slot.schedule_id)
        assert [(g.group_number, g.capacity, g.current_count) for g in groups] == [
            (0, 1, 1),
            (1, 1, 1),
            (2, 1, 1),
        ]

    def test_group_counts_match_seat_holding_bookings(self, db, factory, booking_service, guest_data):
        slot = factory.class_slot(category="pilates", capacity=5)
        for i in range(7):
            booking_service.create_booking(BookingCreate(**guest_data(slot, name=f"G{i}")))

        for group in _groups(db, slot.schedule_id):
            seated = (
                db.query(Booking)
                .filter(Booking.group_id == group.id, Booking.status != "cancelled")
                .count()
            )
            assert seated == group.current_count <= group.capacity


class TestInstantConfirmation:
    def test_mpesa_with_reference_starts_completed_and_awards_points(self, db, factory, booking_service):
        client = factory.user("client")
        slot = factory.class_slot()

        booking = booking_service.create_booking(
            BookingCreate(
                time_slot_id=slot.id,
                user_id=client.id,
                payment_method="mpesa",
                payment_reference="QFT12345",
            )
        )

        assert booking.status == BookingStatus.COMPLETED.value
        assert booking.payment_reference == "QFT12345"
        db.refresh(client)
        assert client.loyalty_points == 10

    def test_mpesa_without_reference_stays_booked(self, factory, booking_service, guest_data):
        slot = factory.class_slot()

        booking = booking_service.create_booking(
            BookingCreate(**guest_data(slot, payment_method="mpesa"))
        )

        assert booking.status == BookingStatus.BOOKED.value

    def test_guest_instant_completion_awards_nothing(self, factory, booking_service, guest_data, monkeypatch):
        slot = factory.class_slot()
        calls = []
        monkeypatch.setattr(
            booking_service.loyalty_service, "award_points", lambda *a, **kw: calls.append(a)
        )

        booking = booking_service.create_booking(
            BookingCreate(**guest_data(slot, payment_method="mpesa", payment_reference="QFT1"))
        )

        assert booking.status == BookingStatus.COMPLETED.value
        assert calls == []


class TestAtomicity:
    def test_failed_insert_rolls_back_seat_and_releases_lock(
        self, db, factory, booking_service, guest_data, monkeypatch
    ):
        slot = factory.class_slot(category="yoga", capacity=20)
        booking_service.create_booking(BookingCreate(**guest_data(slot, name="First")))

        def boom(**kwargs):
            raise RepositoryException("insert failed")

        monkeypatch.setattr(booking_service.booking_repository, "create", boom)

        with pytest.raises(ServiceException) as exc_info:
            booking_service.create_booking(BookingCreate(**guest_data(slot, name="Second")))

        assert exc_info.value.message == "Database operation failed"
        assert [g.current_count for g in _groups(db, slot.schedule_id)] == [1]
        assert db.query(Booking).count() == 1
        assert not holds_schedule_lock(db, slot.schedule_id)

    def test_failed_insert_does_not_leave_a_new_group(self, db, factory, booking_service, guest_data, monkeypatch):
        slot = factory.class_slot()

        def boom(**kwargs):
            raise RepositoryException("insert failed")

        monkeypatch.setattr(booking_service.booking_repository, "create", boom)

        with pytest.raises(ServiceException):
            booking_service.create_booking(BookingCreate(**guest_data(slot)))

        assert _groups(db, slot.schedule_id) == []


class TestTrainerNotification:
    def test_trainer_is_notified(self, db, factory, booking_service, guest_data):
        trainer_user = factory.user("trainer", full_name="Coach Amani")
        trainer = factory.trainer(user=trainer_user)
        slot = factory.class_slot(category="yoga", trainer=trainer)

        booking = booking_service.create_booking(BookingCreate(**guest_data(slot, name="Achieng")))

        notification = db.query(Notification).one()
        assert notification.user_id == trainer_user.id
        assert notification.booking_id == booking.id
        assert notification.title == "New Booking Received"
        assert notification.message == "Achieng has booked your Yoga session for 2025-03-14 07:00"

    def test_session_without_trainer_login_sends_nothing(self, db, factory, booking_service, guest_data):
        slot = factory.class_slot(trainer=factory.trainer(user=None))

        booking_service.create_booking(BookingCreate(**guest_data(slot)))

        assert db.query(Notification).count() == 0

    def test_notification_failure_does_not_fail_booking(
        self, db, factory, booking_service, guest_data, monkeypatch
    ):
        slot = factory.class_slot()

        def broken(booking):
            raise RuntimeError("notification store down")

        monkeypatch.setattr(booking_service.notification_service, "notify_trainer_of_booking", broken)

        booking = booking_service.create_booking(BookingCreate(**guest_data(slot)))

        assert db.get(Booking, booking.id) is not None
        assert [g.current_count for g in _groups(db, slot.schedule_id)] == [1]
