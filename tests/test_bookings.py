import asyncio
import sqlite3

import pytest

from legal_eye_api.app.services.booking_service import BookingService


def test_double_booking_then_cancel_and_rebook(client, lawyer, client_user, other_client, book):
    lawyer_id = lawyer["lawyer"]["id"]

    first = book(client_user, lawyer_id)
    assert first.status_code == 201
    assert first.json()["message"] == "Booking created successfully"

    second = book(other_client, lawyer_id)
    assert second.status_code == 400
    assert second.json() == {"success": False, "message": "This time slot is already booked"}

    booking_id = first.json()["data"]["id"]
    cancel = client.patch(
        f"/api/bookings/{booking_id}/cancel",
        json={"reason": "Settled out of court"},
        headers=client_user["headers"],
    )
    assert cancel.status_code == 200
    assert cancel.json()["data"]["status"] == "cancelled"
    assert cancel.json()["data"]["cancellation_reason"] == "Settled out of court"

    retry = book(other_client, lawyer_id)
    assert retry.status_code == 201


def test_booking_details(client, lawyer, client_user, book):
    response = book(client_user, lawyer["lawyer"]["id"], urgency="high")
    data = response.json()["data"]
    assert data["client_id"] == client_user["user"]["id"]
    assert data["booking_date"] == "2024-01-01"
    assert data["time_slot"] == "10:00"
    assert data["date_time"] == "2024-01-01T10:00"
    assert data["status"] == "pending"
    assert data["urgency"] == "high"
    assert data["consultation_fee"] == 100
    assert data["lawyer_name"] == "Larry Lawyer"
    assert data["client_name"] == "Alice Client"

    profile = client.get(f"/api/lawyers/{lawyer['lawyer']['id']}").json()["data"]
    assert profile["total_bookings"] == 1


def test_fee_is_snapshotted(client, lawyer, client_user, book):
    booking = book(client_user, lawyer["lawyer"]["id"]).json()["data"]
    client.put(f"/api/lawyers/{lawyer['lawyer']['id']}", json={"consultationFee": 500}, headers=lawyer["headers"])
    fetched = client.get(f"/api/bookings/{booking['id']}", headers=client_user["headers"]).json()["data"]
    assert fetched["consultation_fee"] == 100


def test_booking_validation(client, lawyer, client_user, book):
    assert book(client_user, 9999).status_code == 404
    short = book(client_user, lawyer["lawyer"]["id"], description="too short")
    assert short.status_code == 400
    assert short.json()["message"] == "Validation failed"
    assert book(client_user, lawyer["lawyer"]["id"], date="not-a-date").status_code == 400
    assert book(client_user, lawyer["lawyer"]["id"], slot="  ").status_code == 400


def test_booking_requires_authentication(client, lawyer):
    response = client.post("/api/bookings", json={"lawyerId": lawyer["lawyer"]["id"]})
    assert response.status_code == 401


def test_listing_and_visibility(client, lawyer, make_lawyer, client_user, other_client, admin, book):
    lawyer_id = lawyer["lawyer"]["id"]
    mine = book(client_user, lawyer_id, slot="09:00").json()["data"]
    book(other_client, lawyer_id, slot="10:00")

    my_bookings = client.get("/api/bookings/my-bookings", headers=client_user["headers"]).json()
    assert my_bookings["count"] == 1
    assert my_bookings["data"][0]["id"] == mine["id"]

    assert client.get(f"/api/bookings/lawyer/{lawyer_id}", headers=lawyer["headers"]).json()["count"] == 2
    assert client.get(f"/api/bookings/lawyer/{lawyer_id}", headers=admin["headers"]).json()["count"] == 2
    assert client.get(f"/api/bookings/lawyer/{lawyer_id}", headers=client_user["headers"]).status_code == 403

    rival = make_lawyer("Rival Lawyer", "rival@example.com")
    assert client.get(f"/api/bookings/lawyer/{lawyer_id}", headers=rival["headers"]).status_code == 403

    assert client.get(f"/api/bookings/{mine['id']}", headers=client_user["headers"]).status_code == 200
    assert client.get(f"/api/bookings/{mine['id']}", headers=lawyer["headers"]).status_code == 200
    assert client.get(f"/api/bookings/{mine['id']}", headers=admin["headers"]).status_code == 200
    assert client.get(f"/api/bookings/{mine['id']}", headers=other_client["headers"]).status_code == 403
    assert client.get("/api/bookings/9999", headers=client_user["headers"]).status_code == 404


def test_status_changes(client, lawyer, client_user, other_client, book):
    lawyer_id = lawyer["lawyer"]["id"]
    booking = book(client_user, lawyer_id).json()["data"]
    url = f"/api/bookings/{booking['id']}/status"

    assert client.patch(url, json={"status": "confirmed"}, headers=client_user["headers"]).status_code == 403
    assert client.patch(url, json={"status": "archived"}, headers=lawyer["headers"]).status_code == 400

    confirmed = client.patch(url, json={"status": "confirmed"}, headers=lawyer["headers"])
    assert confirmed.status_code == 200
    assert confirmed.json()["data"]["status"] == "confirmed"

    client.patch(url, json={"status": "cancelled"}, headers=lawyer["headers"])
    assert book(other_client, lawyer_id).status_code == 201

    reactivate = client.patch(url, json={"status": "pending"}, headers=lawyer["headers"])
    assert reactivate.status_code == 400
    assert reactivate.json()["message"] == "This time slot is already booked"


def test_cancel_and_complete_rules(client, lawyer, client_user, other_client, book):
    lawyer_id = lawyer["lawyer"]["id"]
    booking = book(client_user, lawyer_id).json()["data"]

    assert client.patch(f"/api/bookings/{booking['id']}/complete", headers=client_user["headers"]).status_code == 403
    assert client.patch(f"/api/bookings/{booking['id']}/cancel", headers=other_client["headers"]).status_code == 403

    completed = client.patch(f"/api/bookings/{booking['id']}/complete", headers=lawyer["headers"])
    assert completed.status_code == 200
    assert completed.json()["data"]["status"] == "completed"

    cancel = client.patch(f"/api/bookings/{booking['id']}/cancel", headers=client_user["headers"])
    assert cancel.status_code == 400

    other = book(client_user, lawyer_id, slot="11:00").json()["data"]
    assert client.patch(f"/api/bookings/{other['id']}/cancel", headers=lawyer["headers"]).status_code == 200
    assert client.patch(f"/api/bookings/{other['id']}/cancel", headers=lawyer["headers"]).status_code == 400
    assert client.patch(f"/api/bookings/{other['id']}/complete", headers=lawyer["headers"]).status_code == 400


def test_reschedule(client, lawyer, client_user, other_client, book):
    lawyer_id = lawyer["lawyer"]["id"]
    mine = book(client_user, lawyer_id, slot="10:00").json()["data"]
    book(other_client, lawyer_id, slot="11:00")
    url = f"/api/bookings/{mine['id']}/reschedule"

    taken = client.patch(url, json={"newDate": "2024-01-01", "newTimeSlot": "11:00"}, headers=client_user["headers"])
    assert taken.status_code == 400
    assert taken.json()["message"] == "New time slot is already booked"

    same = client.patch(url, json={"newDate": "2024-01-01", "newTimeSlot": "10:00"}, headers=client_user["headers"])
    assert same.status_code == 200

    moved = client.patch(url, json={"newDate": "2024-01-02", "newTimeSlot": "09:00"}, headers=client_user["headers"])
    assert moved.status_code == 200
    data = moved.json()["data"]
    assert (data["booking_date"], data["time_slot"], data["date_time"]) == ("2024-01-02", "09:00", "2024-01-02T09:00")

    # the old slot is free again
    assert book(other_client, lawyer_id, slot="10:00").status_code == 201

    stranger = client.patch(url, json={"newDate": "2024-01-03", "newTimeSlot": "09:00"}, headers=other_client["headers"])
    assert stranger.status_code == 403


def test_cannot_reschedule_cancelled_booking(client, lawyer, client_user, book):
    booking = book(client_user, lawyer["lawyer"]["id"]).json()["data"]
    client.patch(f"/api/bookings/{booking['id']}/cancel", headers=client_user["headers"])
    response = client.patch(
        f"/api/bookings/{booking['id']}/reschedule",
        json={"newDate": "2024-02-01", "newTimeSlot": "10:00"},
        headers=client_user["headers"],
    )
    assert response.status_code == 400


def test_is_slot_taken(db, lawyer, client_user, book):
    lawyer_id = lawyer["lawyer"]["id"]
    booking = book(client_user, lawyer_id).json()["data"]

    assert asyncio.run(BookingService.is_slot_taken(db, lawyer_id, "2024-01-01", "10:00"))
    assert not asyncio.run(BookingService.is_slot_taken(db, lawyer_id, "2024-01-01", "11:00"))
    assert not asyncio.run(BookingService.is_slot_taken(db, lawyer_id, "2024-01-02", "10:00"))
    assert not asyncio.run(
        BookingService.is_slot_taken(db, lawyer_id, "2024-01-01", "10:00", exclude_booking_id=booking["id"])
    )


def test_storage_rejects_second_active_booking(db, lawyer, client_user, book):
    lawyer_id = lawyer["lawyer"]["id"]
    book(client_user, lawyer_id)
    with pytest.raises(sqlite3.IntegrityError):
        with db.cursor() as cursor:
            cursor.execute(
                "INSERT INTO bookings (client_id, lawyer_id, booking_date, time_slot) VALUES (?, ?, ?, ?)",
                (client_user["user"]["id"], lawyer_id, "2024-01-01", "10:00"),
            )
    with db.cursor() as cursor:
        cursor.execute(
            "INSERT INTO bookings (client_id, lawyer_id, booking_date, time_slot, status) "
            "VALUES (?, ?, ?, ?, 'cancelled')",
            (client_user["user"]["id"], lawyer_id, "2024-01-01", "10:00"),
        )


def test_status_cannot_cancel_completed_booking(client, lawyer, client_user, book):
    booking = book(client_user, lawyer["lawyer"]["id"]).json()["data"]
    client.patch(f"/api/bookings/{booking['id']}/complete", headers=lawyer["headers"])

    response = client.patch(
        f"/api/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=lawyer["headers"]
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Completed bookings cannot be cancelled"
    fetched = client.get(f"/api/bookings/{booking['id']}", headers=client_user["headers"]).json()["data"]
    assert fetched["status"] == "completed"
