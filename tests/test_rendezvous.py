from datetime import date, datetime, timedelta

from physiocenter.core.security import UserRole
from physiocenter.models.rendezvous import RendezVous, RendezVousStatus
from physiocenter.services.rendezvous_service import RendezVousService, is_cabinet_open
from tests.conftest import create_user, login_headers

# A Monday far enough in the future
MONDAY = date(2030, 1, 7) - timedelta(days=date(2030, 1, 7).weekday())
SATURDAY = MONDAY + timedelta(days=5)
SUNDAY = MONDAY + timedelta(days=6)

def at(day, hour, minute=0):
    return datetime(day.year, day.month, day.day, hour, minute).isoformat()

def book(client, headers, **payload):
    return client.post("/api/v1/rdvs", json=payload, headers=headers)

class TestCabinetHours:

    def test_public_schedule(self, client):
        response = client.get("/api/v1/rdvs/cabinet-hours")
        assert response.status_code == 200

        hours = response.json()["data"]
        assert hours["opening_hour"] == 8
        assert hours["closing_hour"] == 18
        assert hours["open_days"] == [0, 1, 2, 3, 4, 5]
        assert hours["schedule"][5] == {"weekday": 5, "name": "samedi", "open": True, "start": 9, "end": 13}
        assert hours["schedule"][6]["open"] is False

    def test_slot_must_fit_opening_hours(self):
        monday = datetime.fromisoformat(at(MONDAY, 8))
        assert is_cabinet_open(monday, 30)
        assert is_cabinet_open(monday.replace(hour=17, minute=30), 30)
        assert not is_cabinet_open(monday.replace(hour=7, minute=45), 30)
        assert not is_cabinet_open(monday.replace(hour=17, minute=45), 30)
        assert is_cabinet_open(datetime.fromisoformat(at(SATURDAY, 12, 30)), 30)
        assert not is_cabinet_open(datetime.fromisoformat(at(SATURDAY, 12, 45)), 30)
        assert not is_cabinet_open(datetime.fromisoformat(at(SUNDAY, 10)), 30)

class TestBooking:

    def test_patient_books_with_kine(self, client, kine, patient, patient_headers):
        response = book(
            client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 10), reason="Douleur au genou"
        )
        assert response.status_code == 201

        rdv = response.json()["data"]
        assert rdv["patient_id"] == patient.patient.id
        assert rdv["kine_id"] == kine.kine.id
        assert rdv["status"] == "en attente"
        assert rdv["duration"] == 30
        assert rdv["payment_done"] is False
        assert rdv["end_time"] == at(MONDAY, 10, 30)

    def test_kine_books_for_patient(self, client, kine, kine_headers, patient):
        response = book(client, kine_headers, patient_id=patient.patient.id, date=at(MONDAY, 14), duration=45)
        assert response.status_code == 201
        assert response.json()["data"]["kine_id"] == kine.kine.id
        assert response.json()["data"]["duration"] == 45

    def test_patient_must_name_kine(self, client, patient_headers):
        response = book(client, patient_headers, date=at(MONDAY, 10))
        assert response.status_code == 400
        assert "kine_id" in response.json()["detail"]

    def test_admin_cannot_book(self, client, admin_headers, kine, patient):
        response = book(
            client, admin_headers, kine_id=kine.kine.id, patient_id=patient.patient.id, date=at(MONDAY, 10)
        )
        assert response.status_code == 403

    def test_unknown_kine(self, client, patient_headers):
        response = book(client, patient_headers, kine_id="does-not-exist", date=at(MONDAY, 10))
        assert response.status_code == 404

    def test_closed_cabinet(self, client, kine, patient_headers):
        for slot in (at(SUNDAY, 10), at(MONDAY, 7, 30), at(SATURDAY, 12, 45)):
            response = book(client, patient_headers, kine_id=kine.kine.id, date=slot)
            assert response.status_code == 400
            assert response.json()["detail"] == "Le cabinet est fermé à cet horaire."

    def test_overlapping_bookings_are_accepted(self, client, kine, patient_headers):
        for _ in range(2):
            response = book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 10))
            assert response.status_code == 201

    def test_offset_is_kept_as_clinic_time(self, client, kine, patient_headers):
        response = book(client, patient_headers, kine_id=kine.kine.id, date=f"{at(MONDAY, 10)}+02:00")
        assert response.status_code == 201
        assert response.json()["data"]["date"] == at(MONDAY, 10)

    def test_invalid_duration(self, client, kine, patient_headers):
        response = book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 10), duration=0)
        assert response.status_code == 400
        assert "duration" in response.json()["data"]["errors"]

class TestTransitions:

    def booked(self, client, kine, patient_headers, hour=10):
        response = book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, hour))
        assert response.status_code == 201
        return response.json()["data"]["id"]

    def test_confirm_records_payment(self, client, kine, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/confirm", headers=patient_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "à venir"
        assert response.json()["data"]["payment_done"] is True

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/confirm", headers=patient_headers)
        assert response.status_code == 400

    def test_complete_requires_confirmation(self, client, kine, kine_headers, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/complete", headers=kine_headers)
        assert response.status_code == 400

        client.patch(f"/api/v1/rdvs/{rdv_id}/confirm", headers=kine_headers)
        response = client.patch(f"/api/v1/rdvs/{rdv_id}/complete", headers=kine_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "terminé"

        # Finished appointments stay finished
        response = client.patch(f"/api/v1/rdvs/{rdv_id}/cancel", headers=kine_headers)
        assert response.status_code == 400

    def test_patient_cannot_complete(self, client, kine, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)
        client.patch(f"/api/v1/rdvs/{rdv_id}/confirm", headers=patient_headers)

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/complete", headers=patient_headers)
        assert response.status_code == 403

    def test_cancel_once(self, client, kine, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/cancel", headers=patient_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "annulé"

        response = client.patch(f"/api/v1/rdvs/{rdv_id}/cancel", headers=patient_headers)
        assert response.status_code == 400

    def test_other_patient_is_forbidden(self, client, db_session, kine, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)
        create_user(db_session, "other.patient@physiocenter.fr", UserRole.PATIENT)
        headers = login_headers(client, "other.patient@physiocenter.fr")

        assert client.get(f"/api/v1/rdvs/{rdv_id}", headers=headers).status_code == 403
        assert client.patch(f"/api/v1/rdvs/{rdv_id}/cancel", headers=headers).status_code == 403

    def test_update_checks_opening_hours(self, client, kine, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)

        response = client.put(f"/api/v1/rdvs/{rdv_id}", json={"date": at(SUNDAY, 10)}, headers=patient_headers)
        assert response.status_code == 400

        response = client.put(
            f"/api/v1/rdvs/{rdv_id}", json={"date": at(SATURDAY, 9), "reason": "Contrôle"}, headers=patient_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["date"] == at(SATURDAY, 9)
        assert response.json()["data"]["reason"] == "Contrôle"

    def test_delete(self, client, kine, kine_headers, patient_headers):
        rdv_id = self.booked(client, kine, patient_headers)

        response = client.delete(f"/api/v1/rdvs/{rdv_id}", headers=kine_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/rdvs/{rdv_id}", headers=kine_headers)
        assert response.status_code == 404

class TestKineSchedule:

    def test_day_lists_upcoming_only(self, client, kine, kine_headers, patient_headers):
        ids = []
        for slot in (at(MONDAY, 9), at(MONDAY, 11), at(MONDAY + timedelta(days=1), 9)):
            ids.append(book(client, patient_headers, kine_id=kine.kine.id, date=slot).json()["data"]["id"])
        for rdv_id in (ids[1], ids[2]):
            client.patch(f"/api/v1/rdvs/{rdv_id}/confirm", headers=kine_headers)

        response = client.get(
            "/api/v1/rdvs", params={"kine_id": kine.kine.id, "date": MONDAY.isoformat()}, headers=kine_headers
        )
        assert response.status_code == 200
        assert [rdv["id"] for rdv in response.json()["data"]] == [ids[1]]

    def test_day_requires_kine_and_date(self, client, kine, kine_headers):
        response = client.get("/api/v1/rdvs", params={"kine_id": kine.kine.id}, headers=kine_headers)
        assert response.status_code == 400
        assert "date" in response.json()["data"]["errors"]

    def test_patient_cannot_read_kine_schedule(self, client, kine, patient_headers):
        response = client.get(
            "/api/v1/rdvs", params={"kine_id": kine.kine.id, "date": MONDAY.isoformat()}, headers=patient_headers
        )
        assert response.status_code == 403

    def test_patients_of_kine(self, client, db_session, kine, kine_headers, patient, patient_headers):
        other = create_user(db_session, "lea.martin@physiocenter.fr", UserRole.PATIENT, "Léa", "Martin")
        for _ in range(2):
            book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 10))
        book(client, kine_headers, patient_id=other.patient.id, date=at(MONDAY, 15))

        response = client.get(f"/api/v1/rdvs/patients/{kine.kine.id}", headers=kine_headers)
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["data"]] == [other.patient.id, patient.patient.id]

        response = client.get(f"/api/v1/rdvs/patients/{kine.kine.id}", params={"q": "léa"}, headers=kine_headers)
        assert [item["id"] for item in response.json()["data"]] == [other.patient.id]

    def test_my_appointments(self, client, kine, patient_headers):
        book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 16))
        book(client, patient_headers, kine_id=kine.kine.id, date=at(MONDAY, 9))

        response = client.get("/api/v1/rdvs/me", headers=patient_headers)
        assert response.status_code == 200
        assert [rdv["date"] for rdv in response.json()["data"]] == [at(MONDAY, 9), at(MONDAY, 16)]

class TestAutoCancel:

    def test_stale_pending_appointments_are_cancelled(self, db_session, kine, patient):
        now = datetime(2030, 1, 1, 12, 0)

        def rdv(status, minutes_ago):
            item = RendezVous(
                patient_id=patient.patient.id,
                kine_id=kine.kine.id,
                date=datetime.fromisoformat(at(MONDAY, 10)),
                status=status,
                created_at=now - timedelta(minutes=minutes_ago),
            )
            db_session.add(item)
            return item

        stale = rdv(RendezVousStatus.PENDING, 10)
        fresh = rdv(RendezVousStatus.PENDING, 2)
        confirmed = rdv(RendezVousStatus.UPCOMING, 30)
        db_session.commit()

        assert RendezVousService(db_session).cancel_stale(now=now) == 1

        db_session.expire_all()
        assert stale.status == RendezVousStatus.CANCELLED
        assert fresh.status == RendezVousStatus.PENDING
        assert confirmed.status == RendezVousStatus.UPCOMING
