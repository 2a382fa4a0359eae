from bson import ObjectId
from fastapi.testclient import TestClient

import database
import email_service
from main import app


# ---------------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------------
def test_gallery_crud(client, admin_headers):
    res = client.post("/api/gallery", json={"image_url": "https://cdn.example.com/dog.JPG"}, headers=admin_headers)
    assert res.status_code == 201
    image = res.json()

    res = client.put(f"/api/gallery/{image['id']}", json={"image_url": "https://cdn.example.com/cat.png"},
                     headers=admin_headers)
    assert res.json()["image_url"] == "https://cdn.example.com/cat.png"

    body = client.get("/api/gallery").json()
    assert body["pagination"]["total_items"] == 1

    assert client.delete(f"/api/gallery/{image['id']}", headers=admin_headers).json() == {"ok": True}
    assert client.get(f"/api/gallery/{image['id']}").status_code == 404


def test_gallery_rejects_bad_urls(client, admin_headers):
    res = client.post("/api/gallery", json={}, headers=admin_headers)
    assert res.json()["detail"] == "Image URL is required."

    res = client.post("/api/gallery", json={"image_url": "ftp://example.com/a.png"}, headers=admin_headers)
    assert res.json()["detail"] == "Invalid image URL format."

    res = client.post("/api/gallery", json={"image_url": "https://example.com/page.html"}, headers=admin_headers)
    assert res.status_code == 400


# ---------------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------------
def member(name, show_on_home=False):
    return {
        "name": name,
        "title": "Vet",
        "description": "Cares for pets",
        "experience": "5 years",
        "image_url": "/images/team.jpg",
        "show_on_home": show_on_home,
        "contact": {"phone": "555-0100", "email": "vet@example.com", "address": "Main St", "social": {}},
    }


def test_team_crud(client, admin_headers):
    res = client.post("/api/team", json=member("Ana"), headers=admin_headers)
    assert res.status_code == 201
    created = res.json()
    assert created["contact"]["social"]["facebook"] == "#"

    res = client.put(
        f"/api/team/{created['id']}",
        json={"title": "Head Vet", "contact": {"social": {"twitter": "https://twitter.com/ana"}}},
        headers=admin_headers,
    )
    updated = res.json()
    assert updated["title"] == "Head Vet"
    assert updated["contact"]["phone"] == "555-0100"
    assert updated["contact"]["social"]["twitter"] == "https://twitter.com/ana"
    assert updated["contact"]["social"]["facebook"] == "#"

    assert len(client.get("/api/team").json()) == 1
    assert client.delete(f"/api/team/{created['id']}", headers=admin_headers).json() == {"ok": True}
    assert client.get(f"/api/team/{created['id']}").status_code == 404


def test_at_most_four_members_on_home(client, admin_headers):
    for i in range(4):
        assert client.post("/api/team", json=member(f"M{i}", True), headers=admin_headers).status_code == 201

    res = client.post("/api/team", json=member("Fifth", True), headers=admin_headers)
    assert res.status_code == 400

    extra = client.post("/api/team", json=member("Hidden"), headers=admin_headers).json()
    res = client.put(f"/api/team/{extra['id']}", json={"show_on_home": True}, headers=admin_headers)
    assert res.status_code == 400


# ---------------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------------
def reservation_form(**overrides):
    form = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "(555) 123-4567",
        "date": "24/12/2026",
        "species": "Dog",
        "breed": "Beagle",
        "reason": "Vaccination",
    }
    form.update(overrides)
    return form


def test_create_reservation_notifies_store(client, db, sent_emails):
    res = client.post("/api/reservation", json=reservation_form(special_note="<b>shy</b>"))
    assert res.status_code == 201
    assert res.json()["data"]["status"] == "pending"
    assert db.reservation.count_documents({}) == 1

    assert sent_emails[0]["to"] == ["store@example.com"]
    assert "&lt;b&gt;shy&lt;/b&gt;" in sent_emails[0]["html"]


def test_create_reservation_validation(client, sent_emails):
    res = client.post("/api/reservation", json=reservation_form(breed=""))
    assert res.status_code == 400
    assert res.json()["detail"].startswith("Missing required fields")

    assert client.post("/api/reservation", json=reservation_form(email="jane")).json()["detail"] == \
        "Invalid email format."
    assert client.post("/api/reservation", json=reservation_form(phone="12")).json()["detail"] == \
        "Invalid phone number format."
    assert client.post("/api/reservation", json=reservation_form(date="2026-12-24")).json()["detail"] == \
        "Date format must be dd/mm/yyyy."
    assert sent_emails == []


def test_reservation_saved_even_when_email_fails(client, db, monkeypatch):
    monkeypatch.setattr(email_service, "RESEND_API_KEY", "")
    res = client.post("/api/reservation", json=reservation_form())
    assert res.status_code == 500
    assert db.reservation.count_documents({}) == 1


def test_admin_manages_reservations(client, db, admin_headers, sent_emails):
    reservation_id = database.create_document("reservation", dict(reservation_form(), status="pending"))
    database.create_document("reservation", dict(reservation_form(full_name="Other"), status="completed"))

    body = client.get("/api/reservation", params={"status": "pending"}, headers=admin_headers).json()
    assert [r["id"] for r in body["data"]] == [reservation_id]

    res = client.put(f"/api/reservation/{reservation_id}", json={"status": "confirmed", "admin_notes": "Room 2"},
                     headers=admin_headers)
    assert res.json()["status"] == "confirmed"
    assert sent_emails[-1]["to"] == ["jane@example.com"]
    assert "Confirmed" in sent_emails[-1]["subject"]

    res = client.delete(f"/api/reservation/{reservation_id}", headers=admin_headers)
    assert res.json()["ok"] is True
    assert "Cancelled" in sent_emails[-1]["subject"]
    assert db.reservation.count_documents({"_id": ObjectId(reservation_id)}) == 0


def test_reservation_status_without_change_sends_nothing(client, admin_headers, sent_emails):
    reservation_id = database.create_document("reservation", dict(reservation_form(), status="pending"))
    res = client.put(f"/api/reservation/{reservation_id}", json={"admin_notes": "called back"},
                     headers=admin_headers)
    assert res.status_code == 200
    assert sent_emails == []

    assert client.put(f"/api/reservation/{reservation_id}", json={}, headers=admin_headers).status_code == 400


def test_reservations_list_is_admin_only(client, user_headers):
    assert client.get("/api/reservation", headers=user_headers).status_code == 403


# ---------------------------------------------------------------------------------
# Contact
# ---------------------------------------------------------------------------------
def test_contact_form(client, sent_emails):
    res = client.post("/api/contact", json={"name": "Sam", "email": "sam@example.com", "message": "Hi"})
    assert res.json() == {"ok": True, "message": "Message sent successfully!"}
    assert sent_emails[0]["subject"] == "New Contact Form Submission from Sam"


def test_contact_form_validation(client, monkeypatch):
    assert client.post("/api/contact", json={"name": "Sam"}).status_code == 400
    res = client.post("/api/contact", json={"name": "Sam", "email": "nope", "message": "Hi"})
    assert res.json()["detail"] == "Invalid email format."

    monkeypatch.setattr(email_service, "RESEND_API_KEY", "")
    res = client.post("/api/contact", json={"name": "Sam", "email": "sam@example.com", "message": "Hi"})
    assert res.status_code == 500


# ---------------------------------------------------------------------------------
# Search, dashboard and health
# ---------------------------------------------------------------------------------
def test_search(client, add_product, add_pet):
    add_product(name="Dog Shampoo", category="care")
    add_product(name="Cat Litter", category="care")
    add_pet(name="Buddy", breed="Dog-friendly Beagle")

    body = client.get("/api/search", params={"q": "dog"}).json()
    assert [p["name"] for p in body["products"]] == ["Dog Shampoo"]
    assert [p["name"] for p in body["pets"]] == ["Buddy"]

    assert client.get("/api/search", params={"q": "  "}).json() == {"products": [], "pets": []}


def test_search_caps_results(client, add_product):
    for i in range(7):
        add_product(name=f"Toy {i}")
    assert len(client.get("/api/search", params={"q": "toy"}).json()["products"]) == 5


def test_admin_stats(client, admin_headers, user, add_product, add_pet):
    add_product()
    add_pet()
    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    assert stats["total_users"] == 2
    assert stats["total_products"] == 1
    assert stats["total_pets"] == 1
    assert stats["total_orders"] == 0


def test_health(client, user):
    assert client.get("/").json() == {"message": "Pet Shop API running"}
    body = client.get("/test").json()
    assert body["database"] == "✅ Connected & Working"
    assert "user" in body["collections"]


def test_health_without_database(monkeypatch):
    monkeypatch.setattr(database, "db", None)
    body = TestClient(app).get("/test").json()
    assert body["backend"] == "✅ Running"
    assert body["connection_status"] == "Not Connected"


def test_home_cap_applies_to_updates(client, admin_headers):
    featured = [client.post("/api/team", json=member(f"M{i}", True), headers=admin_headers).json()
                for i in range(4)]

    # re-saving a member already on the home page does not count against the cap
    res = client.put(f"/api/team/{featured[0]['id']}", json={"show_on_home": True, "title": "Lead"},
                     headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["title"] == "Lead"

    client.put(f"/api/team/{featured[1]['id']}", json={"show_on_home": False}, headers=admin_headers)
    extra = client.post("/api/team", json=member("Extra"), headers=admin_headers).json()
    res = client.put(f"/api/team/{extra['id']}", json={"show_on_home": True}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["show_on_home"] is True

    res = client.put(f"/api/team/{featured[1]['id']}", json={"show_on_home": True}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["detail"].startswith("Cannot add more than 4 team members")


def test_team_update_rejects_blank_fields(client, db, admin_headers):
    created = client.post("/api/team", json=member("Ana"), headers=admin_headers).json()

    assert client.put(f"/api/team/{created['id']}", json={"name": ""}, headers=admin_headers).status_code == 422
    res = client.put(f"/api/team/{created['id']}", json={"contact": {"phone": ""}}, headers=admin_headers)
    assert res.status_code == 422
    assert db.team_member.find_one({"_id": ObjectId(created["id"])})["name"] == "Ana"
