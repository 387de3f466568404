from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from rentbnb import models

from conftest import auth_headers_for, make_listing, make_user


def register(client, email="ana@example.com", password="correct-horse", name="Ana"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name})


# --- Auth ---

def test_register_and_login(client: TestClient):
    response = register(client)
    assert response.status_code == 201
    user = response.json()["data"]
    assert user["email"] == "ana@example.com"
    assert "hashed_password" not in user

    token = client.post("/auth/token", data={"username": "ana@example.com", "password": "correct-horse"})
    assert token.status_code == 200
    data = token.json()["data"]
    assert data["token_type"] == "bearer"

    me = client.get("/users/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["id"] == user["id"]


def test_register_duplicate_email(client: TestClient):
    register(client)
    duplicate = register(client, name="Someone else")

    assert duplicate.status_code == 409
    assert duplicate.json() == {"success": False, "error": "Email already registered"}


def test_register_validation(client: TestClient):
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "short"})

    assert response.status_code == 422
    assert {d["field"] for d in response.json()["details"]} == {"email", "password"}


def test_login_wrong_password(client: TestClient):
    register(client)
    response = client.post("/auth/token", data={"username": "ana@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Incorrect email or password"}


def test_login_passwordless_account(client: TestClient, guest):
    """Accounts without a password (federated sign-in) cannot use the password flow."""
    response = client.post("/auth/token", data={"username": guest.email, "password": "anything-at-all"})
    assert response.status_code == 401


# --- Profile ---

def test_update_profile(client: TestClient, guest):
    response = client.patch("/users/me", json={"name": "Gil G.", "image": "https://img.example/gil.png"},
                            headers=auth_headers_for(guest))

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Gil G."
    assert response.json()["data"]["image"] == "https://img.example/gil.png"


def test_public_profile_hides_email(client: TestClient, guest):
    data = client.get(f"/users/{guest.id}").json()["data"]
    assert data == {"id": guest.id, "name": "Gil Guest", "image": None}

    assert client.get("/users/999").status_code == 404


def test_delete_account_cascades(client: TestClient, db_session: Session, host, guest, listing):
    own_listing = make_listing(db_session, guest, title="Guest flat")
    db_session.add_all([
        models.Reservation(listing_id=listing.id, user_id=guest.id, start_date=date(2024, 6, 1),
                           end_date=date(2024, 6, 5), total_price=1, status=models.ReservationStatus.CONFIRMED),
        models.Review(listing_id=listing.id, user_id=guest.id, rating=5),
    ])
    db_session.commit()
    guest_id, own_listing_id = guest.id, own_listing.id
    headers = auth_headers_for(guest)

    response = client.delete("/users/me", headers=headers)
    assert response.status_code == 200

    assert db_session.get(models.User, guest_id) is None
    assert db_session.get(models.Listing, own_listing_id) is None
    assert db_session.query(models.Reservation).filter_by(user_id=guest_id).count() == 0
    assert db_session.query(models.Review).filter_by(user_id=guest_id).count() == 0

    # The token outlives the account but no longer resolves to a user
    assert client.get("/users/me", headers=headers).status_code == 401


# --- Favorites ---

def test_favorites_toggle(client: TestClient, guest, listing):
    headers = auth_headers_for(guest)

    assert client.get("/favorites/", headers=headers).json()["data"] == []

    added = client.post(f"/favorites/{listing.id}", headers=headers)
    assert [l["id"] for l in added.json()["data"]] == [listing.id]

    again = client.post(f"/favorites/{listing.id}", headers=headers)
    assert [l["id"] for l in again.json()["data"]] == [listing.id]

    removed = client.delete(f"/favorites/{listing.id}", headers=headers)
    assert removed.json() == {"success": True, "data": []}

    assert client.post("/favorites/999", headers=headers).status_code == 404
    assert client.get("/favorites/").status_code == 401


# --- Reviews ---

def test_review_lifecycle(client: TestClient, db_session: Session, guest, listing):
    headers = auth_headers_for(guest)

    created = client.post(f"/listings/{listing.id}/reviews", json={"rating": 5, "comment": "Great"}, headers=headers)
    assert created.status_code == 201
    review_id = created.json()["data"]["id"]

    duplicate = client.post(f"/listings/{listing.id}/reviews", json={"rating": 2}, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "You have already reviewed this listing"

    out_of_range = client.post(f"/listings/{listing.id}/reviews", json={"rating": 6},
                               headers=auth_headers_for(make_user(db_session, "x@example.com")))
    assert out_of_range.status_code == 422

    reviews = client.get(f"/listings/{listing.id}/reviews").json()["data"]
    assert [(r["id"], r["rating"]) for r in reviews] == [(review_id, 5)]

    updated = client.patch(f"/reviews/{review_id}", json={"rating": 4}, headers=headers)
    assert updated.json()["data"]["rating"] == 4
    assert updated.json()["data"]["comment"] == "Great"

    assert client.delete(f"/reviews/{review_id}", headers=headers).status_code == 200
    assert client.get(f"/listings/{listing.id}/reviews").json()["data"] == []


def test_only_author_edits_review(client: TestClient, db_session: Session, guest, listing):
    review_id = client.post(
        f"/listings/{listing.id}/reviews", json={"rating": 3}, headers=auth_headers_for(guest)
    ).json()["data"]["id"]
    stranger = make_user(db_session, "stranger@example.com")

    assert client.patch(f"/reviews/{review_id}", json={"rating": 1},
                        headers=auth_headers_for(stranger)).status_code == 403
    assert client.delete(f"/reviews/{review_id}", headers=auth_headers_for(stranger)).status_code == 403
    assert client.delete("/reviews/999", headers=auth_headers_for(guest)).status_code == 404


def test_review_on_missing_listing(client: TestClient, guest):
    response = client.post("/listings/999/reviews", json={"rating": 3}, headers=auth_headers_for(guest))
    assert response.status_code == 404
