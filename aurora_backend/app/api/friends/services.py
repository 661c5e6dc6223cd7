# app/api/friends/services.py
import logging
from typing import Optional, Dict, Any, List

from app.core import collections as paths
from app.core.errors import FriendshipNotFoundError, UserNotFoundError
from app.models.friend import FriendEdge
from app.models.user import User
from app.services.firestore_service import commit_atomic
from app.utils.datetime_utils import EPOCH

class FriendService:
    """
    양방향 친구 관계(friend_list 사본 2개)를 관리하는 서비스 클래스.
    - 친구 관계 하나는 friends/{A}/friend_list/{B}, friends/{B}/friend_list/{A} 두 문서로 표현됩니다.
    - 두 문서는 항상 하나의 WriteBatch로 함께 쓰고 함께 지웁니다.
    """
    def __init__(self, db):
        self.db = db
        self.users_ref = self.db.collection(paths.USERS)

    def _get_user(self, uid: str) -> User:
        doc = self.users_ref.document(uid).get()
        if not doc.exists:
            raise UserNotFoundError(uid)
        return User.from_dict(doc.to_dict(), uid=doc.id)

    def friendship_writes(self, sender: User, receiver: User) -> List[tuple]:
        """두 방향의 FriendEdge 생성 작업 목록. 다른 쓰기와 같은 배치에 묶을 때 사용합니다."""
        sender_edge = FriendEdge.from_user(sender)
        receiver_edge = FriendEdge.from_user(receiver)
        return [
            (receiver.uid, 'set', paths.friend_edge(self.db, receiver.uid, sender.uid), sender_edge.to_dict()),
            (sender.uid, 'set', paths.friend_edge(self.db, sender.uid, receiver.uid), receiver_edge.to_dict()),
        ]

    def write_friendship(self, sender: User, receiver: User) -> None:
        """
        수락된 친구 요청에 대해 양쪽 friend_list에 서로의 공개 프로필 사본을 기록합니다.
        두 쓰기는 하나의 배치로 커밋되므로 한쪽만 생기는 비대칭 관계가 남지 않습니다.
        """
        try:
            commit_atomic(self.db, self.friendship_writes(sender, receiver))
            logging.info(f"친구 관계 생성 완료: {sender.uid} <-> {receiver.uid}")
        except Exception as e:
            logging.error(f"친구 관계 생성 실패 ({sender.uid} <-> {receiver.uid}): {e}", exc_info=True)
            raise

    def get_friend(self, uid: str, friend_uid: str) -> Optional[FriendEdge]:
        doc = paths.friend_edge(self.db, uid, friend_uid).get()
        if not doc.exists:
            return None
        return FriendEdge.from_dict(doc.to_dict(), uid=doc.id)

    def are_friends(self, uid: str, friend_uid: str) -> bool:
        return paths.friend_edge(self.db, uid, friend_uid).get().exists

    def list_friend_uids(self, uid: str) -> List[str]:
        return [doc.id for doc in paths.friend_list(self.db, uid).stream() if doc.id != uid]

    def list_friends(self, uid: str) -> List[FriendEdge]:
        """
        친구 목록을 반환합니다.
        고정(isPinned)된 친구가 먼저 오고, 각 그룹은 최근 메시지 시각 내림차순으로 정렬됩니다.
        """
        friends = [
            FriendEdge.from_dict(doc.to_dict(), uid=doc.id)
            for doc in paths.friend_list(self.db, uid).stream()
            if doc.id != uid
        ]

        def latest(edge: FriendEdge):
            return edge.latest_message_timestamp or EPOCH

        pinned = sorted((f for f in friends if f.is_pinned), key=latest, reverse=True)
        unpinned = sorted((f for f in friends if not f.is_pinned), key=latest, reverse=True)
        return pinned + unpinned

    def remove_friend(self, uid: str, friend_uid: str) -> None:
        """
        친구 관계를 양방향 모두 삭제합니다.
        이미 한쪽 사본만 남아 있는 비대칭 상태라도 남은 쪽을 정리합니다.
        """
        my_edge = paths.friend_edge(self.db, uid, friend_uid)
        their_edge = paths.friend_edge(self.db, friend_uid, uid)
        writes = [
            (key, 'delete', ref, None)
            for key, ref in ((uid, my_edge), (friend_uid, their_edge))
            if ref.get().exists
        ]
        if not writes:
            raise FriendshipNotFoundError(uid, friend_uid)
        if len(writes) == 1:
            logging.warning(f"비대칭 친구 관계 정리: {uid} <-> {friend_uid} (남은 사본: {writes[0][0]})")

        try:
            commit_atomic(self.db, writes)
            logging.info(f"친구 삭제 완료: {uid} <-> {friend_uid}")
        except Exception as e:
            logging.error(f"친구 삭제 실패 ({uid} <-> {friend_uid}): {e}", exc_info=True)
            raise

    def update_settings(self, uid: str, friend_uid: str, settings: Dict[str, Any]) -> FriendEdge:
        """
        내 쪽 FriendEdge의 고정/음소거 설정을 변경합니다. 상대방 사본은 건드리지 않습니다.
        :param settings: {'is_pinned': bool, 'is_muted': bool} 중 일부
        """
        field_map = {'is_pinned': 'isPinned', 'is_muted': 'isMuted'}
        update_data = {field_map[k]: bool(v) for k, v in settings.items() if k in field_map}

        edge_ref = paths.friend_edge(self.db, uid, friend_uid)
        if not edge_ref.get().exists:
            raise FriendshipNotFoundError(uid, friend_uid)
        if update_data:
            edge_ref.update(update_data)
        return FriendEdge.from_dict(edge_ref.get().to_dict(), uid=friend_uid)

    def set_pinned(self, uid: str, friend_uid: str, pinned: bool) -> FriendEdge:
        return self.update_settings(uid, friend_uid, {'is_pinned': pinned})

    def set_muted(self, uid: str, friend_uid: str, muted: bool) -> FriendEdge:
        return self.update_settings(uid, friend_uid, {'is_muted': muted})

    def mark_latest_message_seen(self, uid: str, friend_uid: str) -> None:
        edge_ref = paths.friend_edge(self.db, uid, friend_uid)
        if not edge_ref.get().exists:
            raise FriendshipNotFoundError(uid, friend_uid)
        edge_ref.update({'hasUnseenLatestMessage': False})

    def reconcile_friendships(self, uid: str) -> List[str]:
        """
        uid의 friend_list에는 있지만 상대방 friend_list에 내 사본이 없는 관계를 찾아
        canonical users/{uid} 문서로 역방향 사본을 다시 만듭니다.
        :return: 복구된 친구 uid 목록
        """
        me = self._get_user(uid)
        missing = [
            friend_uid for friend_uid in self.list_friend_uids(uid)
            if not paths.friend_edge(self.db, friend_uid, uid).get().exists
        ]
        if not missing:
            return []

        edge_data = FriendEdge.from_user(me).to_dict()
        writes = [
            (friend_uid, 'set', paths.friend_edge(self.db, friend_uid, uid), edge_data)
            for friend_uid in missing
        ]
        commit_atomic(self.db, writes)
        logging.warning(f"비대칭 친구 관계 복구 (uid: {uid}, 복구 대상: {missing})")
        return missing
