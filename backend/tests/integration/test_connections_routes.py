import uuid

from fastapi.testclient import TestClient


def test_request_accept_flow(client: TestClient, login, alice, bob):
    login(alice.id)
    r = client.post("/connections/request", json={"targetUserId": bob.id})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "pending"
    connection_id = body["connectionId"]

    # Bob sees the incoming request
    login(bob.id)
    r = client.get("/connections")
    assert r.status_code == 200
    (row,) = r.json()
    assert row["id"] == connection_id
    assert row["direction"] == "incoming"
    assert row["relationship"] == "incoming"
    assert row["otherUserId"] == alice.id
    assert row["otherUser"] == {"id": alice.id, "name": "Alice Smith", "avatar": None}
    assert {"createdAt", "updatedAt"} <= row.keys()

    # Alice cannot accept her own request
    login(alice.id)
    r = client.post(f"/connections/{connection_id}/respond", json={"action": "accept"})
    assert r.status_code == 409
    assert r.json()["code"] == "INVALID_STATE"

    login(bob.id)
    r = client.post(f"/connections/{connection_id}/respond", json={"action": "accept"})
    assert r.status_code == 200
    assert r.json() == {"status": "accepted"}

    login(alice.id)
    (row,) = client.get("/connections", params={"status": "accepted"}).json()
    assert row["direction"] == "outgoing"
    assert row["status"] == "accepted"
    assert client.get("/connections", params={"status": "pending"}).json() == []


def test_request_errors(client: TestClient, login, alice, bob, carol):
    login(alice.id)
    r = client.post("/connections/request", json={"targetUserId": alice.id})
    assert r.status_code == 400
    assert r.json() == {"detail": "Cannot connect with yourself", "code": "BAD_REQUEST"}

    r = client.post("/connections/request", json={"targetUserId": "not-a-uuid"})
    assert r.status_code == 422

    connection_id = client.post(
        "/connections/request", json={"targetUserId": bob.id}
    ).json()["connectionId"]

    login(carol.id)
    r = client.post(f"/connections/{connection_id}/respond", json={"action": "block"})
    assert r.status_code == 403

    r = client.post(f"/connections/{uuid.uuid4()}/respond", json={"action": "accept"})
    assert r.status_code == 404

    r = client.post(f"/connections/{connection_id}/respond", json={"action": "ignore"})
    assert r.status_code == 422


def test_block_and_remove(client: TestClient, login, alice, bob):
    login(alice.id)
    connection_id = client.post(
        "/connections/request", json={"targetUserId": bob.id}
    ).json()["connectionId"]

    login(bob.id)
    r = client.post(f"/connections/{connection_id}/respond", json={"action": "block"})
    assert r.json() == {"status": "blocked"}

    login(alice.id)
    r = client.post("/connections/request", json={"targetUserId": bob.id})
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"

    r = client.delete(f"/connections/{bob.id}")
    assert r.status_code == 200
    assert r.json() == {"removed": True}
    assert client.delete(f"/connections/{bob.id}").json() == {"removed": False}

    r = client.post("/connections/request", json={"targetUserId": bob.id})
    assert r.json()["status"] == "pending"


def test_decline(client: TestClient, login, alice, bob):
    login(alice.id)
    connection_id = client.post(
        "/connections/request", json={"targetUserId": bob.id}
    ).json()["connectionId"]

    login(bob.id)
    r = client.post(f"/connections/{connection_id}/respond", json={"action": "decline"})
    assert r.json() == {"status": "declined"}
    assert client.get("/connections").json() == []
