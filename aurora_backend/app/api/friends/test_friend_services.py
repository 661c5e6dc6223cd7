# app/api/friends/test_friend_services.py
from datetime import timedelta

import pytest
from google.api_core.exceptions import ServiceUnavailable

from app.core import collections as paths
from app.core.errors import FriendshipNotFoundError
from app.utils.datetime_utils import DateTimeUtils


@pytest.fixture
def friend_service(services):
    return services['friends']


def edge_exists(db, owner, other):
    return paths.friend_edge(db, owner, other).get().exists


class TestWriteFriendship:
    def test_creates_both_edges_with_each_others_snapshot(self, db, friend_service, make_user):
        alice = make_user("alice", profile_image_url="https://img/alice.png")
        bob = make_user("bob")

        friend_service.write_friendship(alice, bob)

        in_bobs_list = paths.friend_edge(db, "bob", "alice").get().to_dict()
        in_alices_list = paths.friend_edge(db, "alice", "bob").get().to_dict()
        assert in_bobs_list["username"] == "alice"
        assert in_bobs_list["profileImageUrl"] == "https://img/alice.png"
        assert in_alices_list["username"] == "bob"
        assert in_alices_list["isPinned"] is False

    def test_failed_commit_leaves_no_edge(self, db, friend_service, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        db.fail_paths.add("friends/bob")

        with pytest.raises(ServiceUnavailable):
            friend_service.write_friendship(alice, bob)

        assert not edge_exists(db, "alice", "bob")
        assert not edge_exists(db, "bob", "alice")


class TestListFriends:
    def test_pinned_first_then_latest_message(self, db, friend_service, make_user):
        me = make_user("me")
        for uid in ("old", "new", "pinned"):
            friend_service.write_friendship(make_user(uid), me)

        now = DateTimeUtils.now()
        paths.friend_edge(db, "me", "old").update({"latestMessageTimestamp": now - timedelta(days=2)})
        paths.friend_edge(db, "me", "new").update({"latestMessageTimestamp": now})
        friend_service.set_pinned("me", "pinned", True)

        assert [f.uid for f in friend_service.list_friends("me")] == ["pinned", "new", "old"]

    def test_self_edge_is_ignored(self, db, friend_service, make_user):
        make_user("me")
        paths.friend_edge(db, "me", "me").set({"uid": "me"})
        assert friend_service.list_friends("me") == []


class TestRemoveFriend:
    def test_removes_both_directions(self, db, friend_service, make_user):
        friend_service.write_friendship(make_user("a"), make_user("b"))

        friend_service.remove_friend("a", "b")

        assert not edge_exists(db, "a", "b")
        assert not edge_exists(db, "b", "a")

    def test_cleans_up_asymmetric_leftover(self, db, friend_service, make_user):
        friend_service.write_friendship(make_user("a"), make_user("b"))
        paths.friend_edge(db, "b", "a").delete()

        friend_service.remove_friend("a", "b")
        assert not edge_exists(db, "a", "b")

    def test_missing_friendship_raises(self, friend_service, make_user):
        make_user("a")
        with pytest.raises(FriendshipNotFoundError):
            friend_service.remove_friend("a", "ghost")


class TestSettings:
    def test_settings_only_touch_own_copy(self, db, friend_service, make_user):
        friend_service.write_friendship(make_user("a"), make_user("b"))

        edge = friend_service.update_settings("a", "b", {"is_pinned": True, "is_muted": True})

        assert edge.is_pinned and edge.is_muted
        theirs = paths.friend_edge(db, "b", "a").get().to_dict()
        assert theirs["isPinned"] is False
        assert theirs["isMuted"] is False

    def test_mark_latest_message_seen(self, db, friend_service, make_user):
        friend_service.write_friendship(make_user("a"), make_user("b"))
        paths.friend_edge(db, "a", "b").update({"hasUnseenLatestMessage": True})

        friend_service.mark_latest_message_seen("a", "b")

        assert friend_service.get_friend("a", "b").has_unseen_latest_message is False

    def test_settings_on_stranger_raise(self, friend_service, make_user):
        make_user("a")
        with pytest.raises(FriendshipNotFoundError):
            friend_service.set_muted("a", "stranger", True)


def test_reconcile_rebuilds_missing_reverse_edges(db, friend_service, make_user):
    me = make_user("me")
    friend_service.write_friendship(make_user("x"), me)
    friend_service.write_friendship(make_user("y"), me)
    paths.friend_edge(db, "y", "me").delete()

    repaired = friend_service.reconcile_friendships("me")

    assert repaired == ["y"]
    assert paths.friend_edge(db, "y", "me").get().to_dict()["username"] == "me"
    assert friend_service.reconcile_friendships("me") == []
