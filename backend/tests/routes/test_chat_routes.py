# backend/tests/routes/test_chat_routes.py
"""HTTP surface for booking chat."""

from tests.helpers import OWNER_ID, RENTER_ID, STRANGER_ID


class TestChatRoutes:
    def test_open_channel(self, client, auth_headers, pending_booking):
        response = client.get(
            f"/chat/booking/{pending_booking.id}", headers=auth_headers(RENTER_ID)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == pending_booking.id
        assert body["message_count"] == 0

    def test_stranger_cannot_open(self, client, auth_headers, pending_booking):
        response = client.get(
            f"/chat/booking/{pending_booking.id}", headers=auth_headers(STRANGER_ID)
        )

        assert response.status_code == 403

    def test_conversation(self, client, auth_headers, pending_booking):
        channel_id = pending_booking.id
        sent = client.post(
            f"/chat/{channel_id}/messages",
            json={"message": "Can I pick up early?"},
            headers=auth_headers(RENTER_ID),
        )
        client.post(
            f"/chat/{channel_id}/messages",
            json={"message": "Sure"},
            headers=auth_headers(OWNER_ID),
        )

        assert sent.status_code == 201
        assert sent.json()["sequence"] == 1
        assert sent.json()["receiver_id"] == OWNER_ID

        detail = client.get(f"/chat/{channel_id}", headers=auth_headers(OWNER_ID)).json()
        assert [m["body"] for m in detail["messages"]] == ["Can I pick up early?", "Sure"]
        assert detail["last_message"] == "Sure"
        assert detail["message_count"] == 2

        unread = client.get("/chat/unread-count", headers=auth_headers(OWNER_ID))
        assert unread.json() == {"count": 1}

        chats = client.get("/chat/my-chats", headers=auth_headers(OWNER_ID)).json()
        assert len(chats) == 1
        assert chats[0]["channel"]["id"] == channel_id
        assert chats[0]["unread_count"] == 1

        marked = client.put(f"/chat/{channel_id}/read", headers=auth_headers(OWNER_ID))
        assert marked.json() == {"count": 1}
        again = client.put(f"/chat/{channel_id}/read", headers=auth_headers(OWNER_ID))
        assert again.json() == {"count": 0}

    def test_empty_message(self, client, auth_headers, pending_booking):
        response = client.post(
            f"/chat/{pending_booking.id}/messages",
            json={"message": "   "},
            headers=auth_headers(RENTER_ID),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_MESSAGE"

    def test_unknown_channel(self, client, auth_headers):
        response = client.get("/chat/" + "01J" + "0" * 23, headers=auth_headers(RENTER_ID))

        assert response.status_code == 404
        assert response.json()["code"] == "CHANNEL_NOT_FOUND"
