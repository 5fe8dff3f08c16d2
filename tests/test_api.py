import pytest
from fastapi.testclient import TestClient

from signaling.app import app
from signaling.connection import LivenessState
from signaling.liveness import sweep
from signaling.state import directory

from conftest import wait_until


@pytest.fixture
def client():
    # The context manager keeps every websocket on one shared event loop
    with TestClient(app) as c:
        yield c


def participants(client, room_id):
    return client.get(f"/room/{room_id}").json()["participants"]


def join_and_wait(client, ws, room_id, user_id, user_name=None):
    msg = {"type": "Join", "room_id": room_id, "user_id": user_id}
    if user_name:
        msg["user_name"] = user_name
    ws.send_json(msg)
    wait_until(lambda: any(p["id"] == user_id for p in participants(client, room_id)))


# ---------------------------------------------------------------------------
# Administrative surface
# ---------------------------------------------------------------------------


def test_info_on_idle_server(client):
    body = client.get("/info").json()
    assert body["status"] == "online"
    assert body["room_count"] == 0
    assert body["connection_count"] == 0
    assert body["uptime"] >= 0


def test_create_room_without_id_round_trip(client):
    resp = client.post("/create-room")
    assert resp.status_code == 200
    room_id = resp.json()["roomId"]
    assert len(room_id) == 8

    info = client.get(f"/room/{room_id}").json()
    assert info == {"roomId": room_id, "participants": [], "created": True}


def test_create_room_with_id_is_idempotent(client):
    assert client.post("/create-room", json={"roomId": "standup"}).json() == {"roomId": "standup"}
    assert client.post("/create-room", json={"roomId": "standup"}).json() == {"roomId": "standup"}
    assert client.get("/info").json()["room_count"] == 1


def test_create_room_with_empty_id_generates_one(client):
    room_id = client.post("/create-room", json={"roomId": ""}).json()["roomId"]
    assert room_id
    assert directory.has_room(room_id)


def test_unknown_room_info(client):
    assert client.get("/room/nope").json() == {"roomId": "nope", "participants": [], "created": False}


def test_create_room_does_not_clobber_members(client):
    with client.websocket_connect("/ws") as a:
        join_and_wait(client, a, "r1", "u1", "Alice")
        client.post("/create-room", json={"roomId": "r1"})
        assert participants(client, "r1") == [{"id": "u1", "name": "Alice"}]


# ---------------------------------------------------------------------------
# Signaling over the WebSocket transport
# ---------------------------------------------------------------------------


def test_two_peers_join_and_one_disconnects(client):
    with client.websocket_connect("/ws") as a:
        join_and_wait(client, a, "r1", "u1")

        with client.websocket_connect("/ws") as b:
            b.send_json({"type": "Join", "room_id": "r1", "user_id": "u2", "user_name": "Bob"})

            assert b.receive_json() == {"type": "Join", "user_id": "u1", "room_id": "r1"}
            assert a.receive_json() == {"type": "Join", "user_id": "u2", "user_name": "Bob", "room_id": "r1"}

            assert participants(client, "r1") == [
                {"id": "u1", "name": "Guest"},
                {"id": "u2", "name": "Bob"},
            ]
            status = client.get("/info").json()
            assert status["room_count"] == 1
            assert status["connection_count"] == 2

        # B went away without sending Leave
        assert a.receive_json() == {"type": "Leave", "user_id": "u2", "room_id": "r1"}
        assert participants(client, "r1") == [{"id": "u1", "name": "Guest"}]

        # Negotiation aimed at the departed peer vanishes; A's socket keeps working
        a.send_json({"type": "IceCandidate", "room_id": "r1", "user_id": "u1", "target_id": "u2", "candidate": "c"})
        with client.websocket_connect("/") as c:
            c.send_json({"type": "Join", "room_id": "r1", "user_id": "u3"})
            assert a.receive_json()["user_id"] == "u3"
            assert c.receive_json()["user_id"] == "u1"


def test_offer_answer_exchange(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        join_and_wait(client, a, "call", "alice")
        b.send_json({"type": "Join", "room_id": "call", "user_id": "bob"})
        b.receive_json()
        a.receive_json()

        offer = {"type": "Offer", "room_id": "call", "user_id": "alice", "target_id": "bob", "sdp": {"type": "offer", "sdp": "v=0"}}
        a.send_json(offer)
        assert b.receive_json() == offer

        answer = {"type": "Answer", "room_id": "call", "user_id": "bob", "target_id": "alice", "sdp": {"type": "answer", "sdp": "v=0"}}
        b.send_json(answer)
        assert a.receive_json() == answer


def test_explicit_leave_and_chat(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        join_and_wait(client, a, "r1", "u1")
        b.send_json({"type": "Join", "room_id": "r1", "user_id": "u2"})
        b.receive_json()
        a.receive_json()

        b.send_json({"type": "ChatMessage", "user_id": "u2", "message": "hi all"})
        assert a.receive_json() == {"type": "ChatMessage", "user_id": "u2", "message": "hi all"}

        b.send_json({"type": "Leave", "user_id": "u2", "room_id": "r1"})
        assert a.receive_json() == {"type": "Leave", "user_id": "u2", "room_id": "r1"}
        wait_until(lambda: client.get("/info").json()["connection_count"] == 1)

        a.send_json({"type": "Leave", "user_id": "u1", "room_id": "r1"})
        wait_until(lambda: not client.get("/room/r1").json()["created"])


def test_malformed_frames_keep_connection_open(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        a.send_text("{not json")
        a.send_text("[]")
        a.send_json({"type": "Mystery"})
        a.send_json({"type": "Join", "room_id": "r1"})
        join_and_wait(client, a, "r1", "u1")

        b.send_json({"type": "Join", "room_id": "r1", "user_id": "u2"})
        assert a.receive_json()["user_id"] == "u2"


def test_idle_clients_survive_liveness_sweeps(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        join_and_wait(client, a, "r1", "u1")
        b.send_json({"type": "Join", "room_id": "r1", "user_id": "u2"})
        b.receive_json()
        a.receive_json()

        def both_confirmed():
            conns = [directory.member_connection("r1", uid) for uid in ("u1", "u2")]
            return all(c.liveness is LivenessState.CONFIRMED for c in conns)

        # Neither client ever answers the keepalive
        for _ in range(3):
            client.portal.call(sweep)
            assert a.receive_json() == {"type": "Ping"}
            assert b.receive_json() == {"type": "Ping"}
            wait_until(both_confirmed)

        assert participants(client, "r1") == [{"id": "u1", "name": "Guest"}, {"id": "u2", "name": "Guest"}]

        # A reply is tolerated and the session keeps relaying
        a.send_json({"type": "Pong"})
        a.send_json({"type": "ChatMessage", "message": "still here"})
        assert b.receive_json() == {"type": "ChatMessage", "message": "still here"}


def test_binary_frames_must_be_valid_utf8(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        # Would parse as a join for "u�" if the bad byte were replaced
        a.send_bytes(b'{"type": "Join", "room_id": "r1", "user_id": "u\xff"}')
        b.send_bytes(b'{"type": "Join", "room_id": "r1", "user_id": "u2"}')
        wait_until(lambda: participants(client, "r1") != [])

        join_and_wait(client, a, "r1", "u1")
        assert [p["id"] for p in participants(client, "r1")] == ["u2", "u1"]
        assert b.receive_json() == {"type": "Join", "user_id": "u1", "room_id": "r1"}
