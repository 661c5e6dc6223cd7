# app/services/test_activity_service.py
from datetime import timedelta

import pytest

from app.core import collections as paths
from app.services.notification_service import ActivityWatcher
from app.utils.datetime_utils import DateTimeUtils


@pytest.fixture
def activity_service(services):
    return services['activity']


@pytest.fixture
def me_with_friend(services, make_user):
    me = make_user("me", has_posted=True)
    services['friends'].write_friendship(make_user("friend"), me)
    make_user("stranger")
    return me


def post(db, uid, when=None, likes=0):
    ref = db.collection(paths.RESPONSE_TO_PROMPT).document()
    ref.set({"uid": uid, "text": f"{uid} answer", "timestamp": when or DateTimeUtils.now(),
             "likes": likes, "likedBy": []})
    return ref


def test_nothing_new_for_fresh_cursor(activity_service, me_with_friend):
    activity_service.mark_seen("me")
    assert activity_service.evaluate("me") == {
        "hasNewPost": False, "hasNewLike": False, "hasUnseenActivity": False,
    }


def test_friend_post_after_cursor_is_new(db, activity_service, me_with_friend):
    activity_service.mark_seen("me")
    post(db, "friend", DateTimeUtils.now() + timedelta(seconds=1))

    state = activity_service.evaluate("me")
    assert state["hasNewPost"] is True
    assert state["hasUnseenActivity"] is True


def test_own_and_stranger_posts_do_not_count(db, activity_service, me_with_friend):
    activity_service.mark_seen("me")
    later = DateTimeUtils.now() + timedelta(seconds=1)
    post(db, "me", later)
    post(db, "stranger", later)

    assert activity_service.evaluate("me")["hasNewPost"] is False


def test_new_like_is_sticky_until_seen(db, activity_service, me_with_friend):
    mine = post(db, "me", DateTimeUtils.now() - timedelta(minutes=1))
    activity_service.mark_seen("me")

    mine.update({"likes": 1})
    assert activity_service.evaluate("me")["hasNewLike"] is True
    # 좋아요 수가 더 이상 변하지 않아도 확인 전까지 유지
    assert activity_service.evaluate("me")["hasNewLike"] is True
    assert activity_service.get_cursor("me").last_likes_count == 1

    activity_service.mark_seen("me")
    assert activity_service.evaluate("me")["hasNewLike"] is False


def test_unlike_does_not_raise_badge(db, activity_service, me_with_friend):
    mine = post(db, "me", DateTimeUtils.now() - timedelta(minutes=1), likes=2)
    activity_service.mark_seen("me")

    mine.update({"likes": 1})

    assert activity_service.evaluate("me")["hasNewLike"] is False
    assert activity_service.get_cursor("me").last_likes_count == 2

    # 같은 친구가 다시 눌러 원래 수로 돌아온 것은 새 좋아요가 아님
    mine.update({"likes": 2})
    assert activity_service.evaluate("me")["hasNewLike"] is False

    mine.update({"likes": 3})
    assert activity_service.evaluate("me")["hasNewLike"] is True


def test_mark_seen_during_evaluate_is_kept(db, activity_service, me_with_friend, monkeypatch):
    mine = post(db, "me", DateTimeUtils.now() - timedelta(minutes=1))
    mine.update({"likes": 1})
    original = activity_service.prompt_service.get_latest_response
    calls = []

    def latest_then_seen(uid):
        response = original(uid)
        if not calls:
            calls.append(uid)
            activity_service.mark_seen(uid)
        return response

    monkeypatch.setattr(activity_service.prompt_service, "get_latest_response", latest_then_seen)

    state = activity_service.evaluate("me")

    cursor = activity_service.get_cursor("me")
    assert cursor.pending_like is False
    assert cursor.last_likes_count == 1
    assert cursor.last_checked_timestamp > DateTimeUtils.now() - timedelta(minutes=1)
    assert state["hasNewLike"] is False


def test_watcher_fires_only_on_badge_change(db, activity_service, me_with_friend):
    activity_service.mark_seen("me")
    events = []
    watcher = ActivityWatcher(activity_service, "me", events.append).start()

    assert [e["hasUnseenActivity"] for e in events] == [False]

    post(db, "friend", DateTimeUtils.now() + timedelta(seconds=1))
    post(db, "friend", DateTimeUtils.now() + timedelta(seconds=2))
    assert [e["hasUnseenActivity"] for e in events] == [False, True]

    watcher.stop()
    assert db.listeners == []
