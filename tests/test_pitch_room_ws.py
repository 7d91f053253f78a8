import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import auth


def _ws_url(room_id, user_id, role):
    return f"/pitch-rooms/ws/{room_id}?userId={user_id}&userRole={role}"


def _say(sender_id, content, room_id):
    return {"type": "message", "data": {"senderId": sender_id, "content": content, "roomId": room_id}}


def test_connection_without_user_information_is_refused(client, seeded):
    for url in (
        f"/pitch-rooms/ws/{seeded.room_id}",
        _ws_url(seeded.room_id, seeded.ben_user_id, "lurker"),
    ):
        # The handshake completes; the refusal arrives as a close frame
        with client.websocket_connect(url) as ws:
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
        assert exc.value.code == 1008
        assert exc.value.reason == "Missing user information"


def test_frames_sent_under_another_users_id_are_dropped(client, seeded):
    room = seeded.room_id
    with client.websocket_connect(_ws_url(room, seeded.founder_user_id, "founder")) as founder:
        founder.receive_json()
        with client.websocket_connect(_ws_url(room, seeded.ben_user_id, "investor")) as ben:
            ben.receive_json()

            ben.send_json(_say(seeded.founder_user_id, "I accept my own terms", room))
            ben.send_json(_say(seeded.ben_user_id, "Looking forward to it", room))

            frame = founder.receive_json()
            assert frame["message"]["content"] == "Looking forward to it"
            assert frame["message"]["senderRole"] == "investor"

    messages = client.get(f"/pitch-rooms/{room}/messages", headers=auth(seeded.founder_user_id)).json()["messages"]
    assert [m["content"] for m in messages] == ["Looking forward to it"]


def test_message_reaches_both_participants(client, seeded):
    room = seeded.room_id
    with client.websocket_connect(_ws_url(room, seeded.founder_user_id, "founder")) as founder:
        assert founder.receive_json() == {"type": "history", "messages": []}
        with client.websocket_connect(_ws_url(room, seeded.ben_user_id, "investor")) as ben:
            assert ben.receive_json()["type"] == "history"

            founder.send_json(_say(seeded.founder_user_id, "Thanks for joining", room))

            for ws in (founder, ben):
                frame = ws.receive_json()
                assert frame["type"] == "message"
                assert frame["message"]["content"] == "Thanks for joining"
                assert frame["message"]["senderRole"] == "founder"
                assert frame["message"]["senderName"] == "Ada Founder"
                assert frame["message"]["roomId"] == room


def test_malformed_frames_are_ignored(client, seeded):
    room = seeded.room_id
    with client.websocket_connect(_ws_url(room, seeded.ben_user_id, "investor")) as ben:
        ben.receive_json()

        ben.send_text("{not json")
        ben.send_json({"type": "typing", "data": {}})
        ben.send_json(_say(seeded.ben_user_id, "still here", room))

        frame = ben.receive_json()
        assert frame["type"] == "message"
        assert frame["message"]["content"] == "still here"
        assert frame["message"]["senderRole"] == "investor"


def test_late_joiner_receives_history_first(client, seeded):
    room = seeded.room_id
    with client.websocket_connect(_ws_url(room, seeded.founder_user_id, "founder")) as founder:
        founder.receive_json()
        for text in ("one", "two"):
            founder.send_json(_say(seeded.founder_user_id, text, room))
            founder.receive_json()

        with client.websocket_connect(_ws_url(room, seeded.ben_user_id, "investor")) as ben:
            history = ben.receive_json()
            assert history["type"] == "history"
            assert [m["content"] for m in history["messages"]] == ["one", "two"]

            founder.send_json(_say(seeded.founder_user_id, "three", room))
            assert ben.receive_json()["message"]["content"] == "three"


def test_messages_are_persisted_and_listed(client, seeded):
    room = seeded.room_id
    with client.websocket_connect(_ws_url(room, seeded.ben_user_id, "investor")) as ben:
        ben.receive_json()
        ben.send_json(_say(seeded.ben_user_id, "Can we talk terms?", room))
        ben.receive_json()

    res = client.get(f"/pitch-rooms/{room}/messages", headers=auth(seeded.founder_user_id))

    assert res.status_code == 200
    [message] = res.json()["messages"]
    assert message["content"] == "Can we talk terms?"
    assert message["senderId"] == seeded.ben_user_id
    assert message["senderRole"] == "investor"


def test_pitch_room_listing_and_access(client, seeded):
    rooms = client.get("/pitch-rooms", headers=auth(seeded.ben_user_id)).json()
    assert [r["id"] for r in rooms] == [seeded.room_id]
    assert rooms[0]["status"] == "active"

    detail = client.get(f"/pitch-rooms/{seeded.room_id}", headers=auth(seeded.founder_user_id)).json()
    assert detail["currentUser"] == {"id": seeded.founder_user_id, "role": "founder"}
    assert detail["online"] == []

    assert client.get(f"/pitch-rooms/{seeded.room_id}", headers=auth(seeded.outsider_user_id)).status_code == 403
    assert client.get("/pitch-rooms/missing", headers=auth(seeded.founder_user_id)).status_code == 404
