# app/api/test_api_routes.py
"""HTTP 계층 테스트: 인증, 에러 응답 형식, 주요 시나리오를 Flask test client로 확인합니다."""
import json

from app.core import collections as paths


def test_protected_route_requires_token(client):
    res = client.get('/api/friends')
    assert res.status_code == 401
    assert res.get_json()["error_code"] == "AUTHENTICATION_REQUIRED"


def test_session_creates_user_and_issues_tokens(client, db):
    res = client.post('/api/auth/session', json={"id_token": "valid:newbie"})

    body = res.get_json()
    assert res.status_code == 200
    assert body["is_new_user"] is True
    assert body["user_info"]["uid"] == "newbie"
    assert db.collection(paths.USERS).document("newbie").get().exists

    again = client.post('/api/auth/session', json={"id_token": "valid:newbie"}).get_json()
    assert again["is_new_user"] is False


def test_session_with_bad_id_token(client):
    res = client.post('/api/auth/session', json={"id_token": "forged"})
    assert res.status_code == 401
    assert res.get_json()["error_code"] == "INVALID_ID_TOKEN"


def test_logout_revokes_tokens_and_clears_fcm(client, db, make_user):
    make_user("me", fcm_token="device-token")
    tokens = client.post('/api/auth/session', json={"id_token": "valid:me"}).get_json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    res = client.post('/api/auth/logout', json={
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
    })

    assert res.status_code == 200
    assert db.collection(paths.USERS).document("me").get().to_dict()["fcmToken"] == ""
    revoked = client.get('/api/users/me', headers=headers)
    assert revoked.status_code == 401
    assert revoked.get_json()["error_code"] == "TOKEN_REVOKED"


def test_friend_request_flow_a_to_b(client, db, make_user, auth_headers):
    make_user("a", username="Alice")
    make_user("b", username="Bob")

    sent = client.post('/api/friend-requests', json={"to_uid": "b"}, headers=auth_headers("a"))
    assert sent.status_code == 201

    duplicate = client.post('/api/friend-requests', json={"to_uid": "b"}, headers=auth_headers("a"))
    assert duplicate.status_code == 409
    assert duplicate.get_json()["error_code"] == "FRIEND_REQUEST_ALREADY_EXISTS"

    inbox = client.get('/api/friend-requests', headers=auth_headers("b")).get_json()
    assert inbox["count"] == 1
    assert inbox["requests"][0]["fromUid"] == "a"

    accepted = client.post('/api/friend-requests/a/accept', headers=auth_headers("b"))
    assert accepted.status_code == 200
    assert not paths.request_list(db, "b").document("a").get().exists

    a_friends = client.get('/api/friends', headers=auth_headers("a")).get_json()
    b_friends = client.get('/api/friends', headers=auth_headers("b")).get_json()
    assert [f["username"] for f in a_friends] == ["Bob"]
    assert [f["username"] for f in b_friends] == ["Alice"]

    status = client.get('/api/friend-requests/status/b', headers=auth_headers("a")).get_json()
    assert status == {"status": "friends"}


def test_self_request_is_bad_request(client, make_user, auth_headers):
    make_user("a")
    res = client.post('/api/friend-requests', json={"to_uid": "a"}, headers=auth_headers("a"))
    assert res.status_code == 400
    assert res.get_json()["error_code"] == "INVALID_FRIEND_REQUEST"


def test_validation_error_shape(client, make_user, auth_headers):
    make_user("a")
    res = client.patch('/api/friends/b/settings', json={}, headers=auth_headers("a"))
    assert res.status_code == 400
    assert res.get_json()["error_code"] == "VALIDATION_ERROR"


def test_unknown_user_profile_is_404(client, auth_headers):
    res = client.get('/api/users/ghost', headers=auth_headers("me"))
    assert res.status_code == 404
    assert res.get_json()["error_code"] == "USER_NOT_FOUND"


def test_prompt_feed_and_like(client, services, make_user, auth_headers):
    me = make_user("me")
    services['friends'].write_friendship(make_user("f"), me)
    friend_post = services['prompts'].submit_response("f", "friend answer")

    locked = client.get('/api/prompts/feed', headers=auth_headers("me")).get_json()
    assert locked == {"locked": True, "responses": []}

    created = client.post('/api/prompts/responses', json={"text": "my answer"}, headers=auth_headers("me"))
    assert created.status_code == 201

    feed = client.get('/api/prompts/feed', headers=auth_headers("me")).get_json()
    assert feed["locked"] is False
    assert {r["text"] for r in feed["responses"]} == {"my answer", "friend answer"}

    like = client.post(f'/api/prompts/responses/{friend_post.response_id}/like', headers=auth_headers("me"))
    assert like.get_json() == {"liked": True, "likes": 1}


def test_activity_endpoints(client, services, make_user, auth_headers):
    me = make_user("me", has_posted=True)
    services['friends'].write_friendship(make_user("f"), me)

    seen = client.post('/api/activity/seen', headers=auth_headers("me"))
    assert seen.status_code == 200
    assert client.get('/api/activity', headers=auth_headers("me")).get_json()["hasUnseenActivity"] is False

    services['prompts'].submit_response("f", "new!")
    assert client.get('/api/activity', headers=auth_headers("me")).get_json()["hasNewPost"] is True


def test_activity_stream_sends_initial_state(client, make_user, auth_headers):
    make_user("me")
    res = client.get('/api/activity/stream', headers=auth_headers("me"), buffered=False)
    assert res.mimetype == "text/event-stream"

    chunks = iter(res.response)
    first = next(chunks)
    first = first.decode() if isinstance(first, bytes) else first
    res.close()

    assert first.startswith("event: activity")
    payload = json.loads(first.split("data: ", 1)[1])
    assert payload["hasUnseenActivity"] is False


def test_saved_messages_routes(client, auth_headers):
    headers = auth_headers("me")
    created = client.post('/api/saved-messages/you', json={"sender": "you", "text": "keep this"}, headers=headers)
    assert created.status_code == 201
    message_id = created.get_json()["messageId"]

    listed = client.get('/api/saved-messages/you', headers=headers).get_json()
    assert [m["text"] for m in listed] == ["keep this"]
    assert len(client.get('/api/saved-messages/you?grouped=1', headers=headers).get_json()) == 1
    assert client.get('/api/saved-messages/you?date=not-a-date', headers=headers).status_code == 400

    assert client.delete(f'/api/saved-messages/you/{message_id}', headers=headers).status_code == 204
    assert client.delete(f'/api/saved-messages/you/{message_id}', headers=headers).status_code == 404


def test_saved_message_keeps_sent_time_and_triggers_partner(client, auth_headers):
    created = client.post('/api/saved-messages/you',
                          json={"sender": "you", "text": "from last week", "timestamp": "2024-03-01T23:30:00+00:00"},
                          headers=auth_headers("me"))
    assert created.status_code == 201
    body = created.get_json()
    assert body["fromId"] == "me"
    assert body["toId"] == "you"

    on_day = client.get('/api/saved-messages/you?date=2024-03-01', headers=auth_headers("me")).get_json()
    assert [m["text"] for m in on_day] == ["from last week"]

    partner = auth_headers("you")
    assert client.get('/api/saved-messages/me/trigger', headers=partner).get_json() == {"triggering": True}
    assert client.delete('/api/saved-messages/me/trigger', headers=partner).status_code == 204
    assert client.get('/api/saved-messages/me/trigger', headers=partner).get_json() == {"triggering": False}


def test_reports_are_routed_by_scope(client, db, auth_headers):
    headers = auth_headers("me")
    client.post('/api/reports', json={"reportee_uid": "bad", "content": "spam"}, headers=headers)
    client.post('/api/reports', json={"reportee_uid": "me", "content": "hacked", "scope": "self"}, headers=headers)

    assert len(db.collection(paths.REPORTS).get()) == 1
    assert len(db.collection(paths.REPORTS_FOR_SELF).get()) == 1
    assert db.collection(paths.REPORTS).get()[0].to_dict()["reporterUid"] == "me"


def test_profile_image_upload_flow(client, db, bucket, make_user, auth_headers):
    make_user("me")
    headers = auth_headers("me")

    url_info = client.post('/api/uploads/profile-image-url',
                           json={"filename": "face.png", "content_type": "image/png"},
                           headers=headers).get_json()
    assert url_info["file_path"].startswith("profile_images/me/")

    missing = client.patch('/api/users/me/profile-image', json={"file_path": url_info["file_path"]}, headers=headers)
    assert missing.status_code == 404

    bucket.uploaded.add(url_info["file_path"])
    done = client.patch('/api/users/me/profile-image', json={"file_path": url_info["file_path"]}, headers=headers)
    assert done.status_code == 200
    stored = db.collection(paths.USERS).document("me").get().to_dict()
    assert stored["profileImageUrl"] == done.get_json()["profileImageUrl"]


def test_delete_account_route(client, db, make_user, auth_headers, fake_firebase_auth):
    make_user("me")
    assert client.delete('/api/users/me', headers=auth_headers("me")).status_code == 204
    assert not db.collection(paths.USERS).document("me").get().exists
    assert fake_firebase_auth == ["me"]
