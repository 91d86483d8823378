"""
End-to-end tests through the FastAPI app.
"""

from sqlmodel import select

from barbershop.data import seed_admin
from barbershop.models import Barber, User

from conftest import FUTURE, auth_headers, make_service


def booking_body(shop, start="10:00", service="haircut"):
    return {
        "barber_id": shop["barber"].id,
        "service_id": shop[service].id,
        "date": FUTURE.isoformat(),
        "start_time": start,
    }


class TestUsersAndAuth:
    def test_register_login_me(self, api):
        res = api.post("/users", json={
            "name": "Zoe", "email": "zoe@example.com", "phone": "555", "password": "supersecret",
        })
        assert res.status_code == 201
        assert res.json()["role"] == "client"

        res = api.post("/auth/login", data={"username": "zoe@example.com", "password": "supersecret"})
        assert res.status_code == 200
        token = res.json()["access_token"]

        res = api.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200
        assert res.json()["email"] == "zoe@example.com"

    def test_duplicate_email(self, api, shop):
        res = api.post("/users", json={"name": "A", "email": "alice@example.com", "password": "supersecret"})
        assert res.status_code == 409

    def test_bad_login(self, api):
        api.post("/users", json={"name": "Yan", "email": "yan@example.com", "password": "supersecret"})
        res = api.post("/auth/login", data={"username": "yan@example.com", "password": "wrongpassword"})
        assert res.status_code == 401
        res = api.post("/auth/login", data={"username": "nobody@example.com", "password": "supersecret"})
        assert res.status_code == 401

    def test_bad_token(self, api):
        assert api.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    def test_admin_promotes_user(self, api, shop):
        res = api.put(f"/users/{shop['carol'].id}/role", json={"role": "barber"}, headers=auth_headers(shop["admin"]))
        assert res.status_code == 200
        assert res.json()["role"] == "barber"

        barbers = api.get("/barbers").json()
        assert {b["user_id"] for b in barbers} == {shop["barber"].user_id, shop["carol"].id}

    def test_non_admin_cannot_change_roles(self, api, shop):
        res = api.put(f"/users/{shop['carol'].id}/role", json={"role": "admin"}, headers=auth_headers(shop["alice"]))
        assert res.status_code == 403


class TestBookingFlow:
    def test_availability(self, api, shop):
        res = api.get(f"/barbers/{shop['barber'].id}/availability", params={"date": FUTURE.isoformat()})
        assert res.status_code == 200
        starts = res.json()["available_starts"]
        assert len(starts) == 18
        assert starts[0] == "09:00"
        assert starts[-1] == "17:30"

    def test_book_conflict_cancel(self, api, shop, sender):
        headers = auth_headers(shop["alice"])
        availability = f"/barbers/{shop['barber'].id}/availability"

        res = api.post("/appointments", json=booking_body(shop, "10:00", "cut_and_beard"), headers=headers)
        assert res.status_code == 201
        appt = res.json()
        assert (appt["start_time"], appt["end_time"], appt["status"]) == ("10:00", "10:45", "pending")
        assert sender.sent and sender.sent[0][0] == "alice@example.com"

        starts = api.get(availability, params={"date": FUTURE.isoformat()}).json()["available_starts"]
        assert "10:00" not in starts and "10:30" not in starts

        res = api.post("/appointments", json=booking_body(shop, "10:30"), headers=auth_headers(shop["carol"]))
        assert res.status_code == 409

        res = api.patch(f"/appointments/{appt['id']}/cancel", headers=headers)
        assert res.status_code == 200
        assert res.json()["status"] == "cancelled"

        starts = api.get(availability, params={"date": FUTURE.isoformat()}).json()["available_starts"]
        assert "10:00" in starts and "10:30" in starts

    def test_barber_confirms_completes_client_rates(self, api, shop):
        client_h, barber_h = auth_headers(shop["alice"]), auth_headers(shop["barber_user"])
        appt_id = api.post("/appointments", json=booking_body(shop), headers=client_h).json()["id"]

        res = api.post(f"/appointments/{appt_id}/rate", json={"rating": 5}, headers=client_h)
        assert res.status_code == 409

        for status in ("confirmed", "completed"):
            res = api.put(f"/appointments/{appt_id}", json={"status": status}, headers=barber_h)
            assert res.status_code == 200

        res = api.post(f"/appointments/{appt_id}/rate", json={"rating": 4, "review": "good"}, headers=client_h)
        assert res.status_code == 200

        barber = api.get(f"/barbers/{shop['barber'].id}").json()
        assert barber["rating"] == 4
        assert barber["ratings_count"] == 1
        assert barber["completed_appointments"] == 1

    def test_rating_out_of_range(self, api, shop):
        client_h, barber_h = auth_headers(shop["alice"]), auth_headers(shop["barber_user"])
        appt_id = api.post("/appointments", json=booking_body(shop), headers=client_h).json()["id"]
        api.put(f"/appointments/{appt_id}", json={"status": "confirmed"}, headers=barber_h)
        api.put(f"/appointments/{appt_id}", json={"status": "completed"}, headers=barber_h)

        res = api.post(f"/appointments/{appt_id}/rate", json={"rating": 9}, headers=client_h)
        assert res.status_code == 422

    def test_scoped_listings(self, api, shop):
        api.post("/appointments", json=booking_body(shop, "10:00"), headers=auth_headers(shop["alice"]))
        api.post("/appointments", json=booking_body(shop, "11:00"), headers=auth_headers(shop["carol"]))

        mine = api.get("/appointments/me", headers=auth_headers(shop["alice"])).json()
        assert [a["start_time"] for a in mine] == ["10:00"]

        barber = api.get("/appointments/barber", headers=auth_headers(shop["barber_user"])).json()
        assert len(barber) == 2

        by_date = api.get("/appointments/by-date", params={"date": FUTURE.isoformat()},
                          headers=auth_headers(shop["carol"])).json()
        assert [a["start_time"] for a in by_date] == ["11:00"]

        assert api.get("/appointments", headers=auth_headers(shop["alice"])).status_code == 403
        assert len(api.get("/appointments", headers=auth_headers(shop["admin"])).json()) == 2

    def test_stranger_cannot_view(self, api, shop):
        appt_id = api.post("/appointments", json=booking_body(shop), headers=auth_headers(shop["alice"])).json()["id"]
        assert api.get(f"/appointments/{appt_id}", headers=auth_headers(shop["carol"])).status_code == 403
        assert api.get(f"/appointments/{appt_id}", headers=auth_headers(shop["barber_user"])).status_code == 200


class TestErrors:
    def test_unknown_barber(self, api):
        res = api.get("/barbers/404/availability", params={"date": FUTURE.isoformat()})
        assert res.status_code == 404

    def test_malformed_time(self, api, shop):
        res = api.post("/appointments", json=booking_body(shop, "9am"), headers=auth_headers(shop["alice"]))
        assert res.status_code == 422

    def test_outside_hours(self, api, shop):
        res = api.post("/appointments", json=booking_body(shop, "07:00"), headers=auth_headers(shop["alice"]))
        assert res.status_code == 422

    def test_demotion_cascade_over_http(self, api, shop, session):
        appt_id = api.post("/appointments", json=booking_body(shop), headers=auth_headers(shop["alice"])).json()["id"]
        res = api.put(f"/users/{shop['barber_user'].id}/role", json={"role": "client"},
                      headers=auth_headers(shop["admin"]))
        assert res.status_code == 200

        res = api.get(f"/appointments/{appt_id}", headers=auth_headers(shop["admin"]))
        assert res.json()["status"] == "cancelled"
        assert session.get(User, shop["barber_user"].id).role == "client"


class TestServices:
    def test_admin_manages_services(self, api, shop):
        admin = auth_headers(shop["admin"])
        res = api.post("/services", json={"name": "Shave", "duration_minutes": 20, "price": 15}, headers=admin)
        assert res.status_code == 201
        service_id = res.json()["id"]

        res = api.put(f"/services/{service_id}", json={"available": False}, headers=admin)
        assert res.json()["available"] is False
        names = [s["name"] for s in api.get("/services").json()]
        assert "Shave" not in names

        assert api.delete(f"/services/{service_id}", headers=admin).status_code == 200

    def test_client_cannot_create_service(self, api, shop):
        res = api.post("/services", json={"name": "X", "duration_minutes": 20, "price": 1},
                       headers=auth_headers(shop["alice"]))
        assert res.status_code == 403

    def test_zero_duration_rejected(self, api, shop):
        res = api.post("/services", json={"name": "X", "duration_minutes": 0, "price": 1},
                       headers=auth_headers(shop["admin"]))
        assert res.status_code == 422

    def test_service_in_use_cannot_be_deleted(self, api, shop):
        api.post("/appointments", json=booking_body(shop), headers=auth_headers(shop["alice"]))
        res = api.delete(f"/services/{shop['haircut'].id}", headers=auth_headers(shop["admin"]))
        assert res.status_code == 409

    def test_unavailable_services_are_admin_only(self, api, shop, session):
        service = make_service(session, "Secret", 20, 5.0)
        service.available = False
        session.add(service)
        session.commit()

        params = {"include_unavailable": "true"}
        anonymous = [s["name"] for s in api.get("/services", params=params).json()]
        client = [s["name"] for s in api.get("/services", params=params, headers=auth_headers(shop["alice"])).json()]
        admin = [s["name"] for s in api.get("/services", params=params, headers=auth_headers(shop["admin"])).json()]

        assert "Secret" not in anonymous
        assert "Secret" not in client
        assert admin == ["Haircut", "Cut and beard", "Secret"]


class TestAdminBootstrap:
    def test_creates_admin_who_can_log_in(self, api, session):
        seed_admin(session, "root@example.com", "rootpassword")

        res = api.post("/auth/login", data={"username": "root@example.com", "password": "rootpassword"})
        assert res.status_code == 200
        headers = {"Authorization": f"Bearer {res.json()['access_token']}"}
        assert api.get("/me", headers=headers).json()["role"] == "admin"
        assert api.get("/stats/admin", headers=headers).status_code == 200

    def test_is_idempotent(self, session):
        first = seed_admin(session, "root@example.com", "rootpassword")
        second = seed_admin(session, "root@example.com", "other-password")
        assert first.id == second.id
        assert len(session.exec(select(User).where(User.email == "root@example.com")).all()) == 1

    def test_promotes_existing_client(self, session, shop):
        user = seed_admin(session, "alice@example.com", "ignored-password")
        assert user.id == shop["alice"].id
        assert user.role == "admin"
        assert user.password_hash == "not-a-real-hash"

    def test_promotes_existing_barber_and_drops_profile(self, session, shop):
        user = seed_admin(session, "bob@example.com", "ignored-password")
        assert user.role == "admin"
        assert session.exec(select(Barber)).all() == []


class TestBarberProfile:
    def test_specialty_can_be_cleared(self, api, shop):
        res = api.put("/barbers/me", json={"specialty": ""}, headers=auth_headers(shop["barber_user"]))
        assert res.status_code == 200
        assert res.json()["specialty"] == ""
