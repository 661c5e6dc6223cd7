# app/api/friend_requests/services.py
import logging
from typing import Dict, Any, List

from google.cloud.firestore_v1.base_query import FieldFilter

from app.api.friends.services import FriendService
from app.core import collections as paths
from app.core.errors import (
    FriendRequestAlreadyExistsError,
    FriendRequestNotFoundError,
    FriendshipAlreadyExistsError,
    InvalidFriendRequestError,
    UserNotFoundError,
)
from app.models.friend_request import FriendRequest, FriendRequestStatus
from app.models.user import User
from app.services.firestore_service import commit_atomic
from app.utils.datetime_utils import DateTimeUtils, EPOCH

class FriendRequestService:
    """
    친구 요청 우편함(friend_request/{to}/request_list/{from}) 관련 비즈니스 로직.
    상태 전이: pending -> accepted (요청 삭제 + FriendEdge 2개 생성) | rejected (요청 삭제)
    """
    def __init__(self, db, friend_service: FriendService):
        self.db = db
        self.users_ref = self.db.collection(paths.USERS)
        self.friend_service = friend_service

    def _get_user(self, uid: str) -> User:
        doc = self.users_ref.document(uid).get()
        if not doc.exists:
            raise UserNotFoundError(uid)
        return User.from_dict(doc.to_dict(), uid=doc.id)

    def _request_ref(self, to_uid: str, from_uid: str):
        return paths.request_list(self.db, to_uid).document(from_uid)

    def send_request(self, from_uid: str, to_uid: str) -> Dict[str, Any]:
        """
        친구 요청을 보냅니다.
        문서 ID가 보낸 사람 uid이므로 같은 상대에게 대기 중인 요청은 최대 1개입니다.
        """
        if from_uid == to_uid:
            raise InvalidFriendRequestError("자기 자신에게는 친구 요청을 보낼 수 없습니다.")

        sender = self._get_user(from_uid)
        self._get_user(to_uid)

        if self.friend_service.are_friends(from_uid, to_uid):
            raise FriendshipAlreadyExistsError(from_uid, to_uid)

        request_ref = self._request_ref(to_uid, from_uid)
        if request_ref.get().exists:
            raise FriendRequestAlreadyExistsError(from_uid, to_uid)

        new_request = FriendRequest.from_sender(sender)
        try:
            request_ref.set(DateTimeUtils.for_firestore(new_request.to_dict()))
            logging.info(f"친구 요청 전송 완료: {from_uid} -> {to_uid}")
        except Exception as e:
            logging.error(f"친구 요청 전송 실패 ({from_uid} -> {to_uid}): {e}", exc_info=True)
            raise
        return new_request.to_dict()

    def list_pending_requests(self, uid: str) -> List[Dict[str, Any]]:
        """
        나에게 온 대기 중 요청 목록을 최신순으로 반환합니다.
        보낸 사람의 이름/사진은 요청 당시 스냅샷 대신 현재 users 문서 값으로 채웁니다.
        """
        query = paths.request_list(self.db, uid).where(
            filter=FieldFilter("status", "==", FriendRequestStatus.PENDING.value)
        )
        requests = [FriendRequest.from_dict(doc.to_dict(), doc_id=doc.id) for doc in query.stream()]

        results = []
        for req in requests:
            sender_doc = self.users_ref.document(req.from_uid).get()
            if sender_doc.exists:
                sender = User.from_dict(sender_doc.to_dict(), uid=sender_doc.id)
                req.username = sender.username or req.username
                req.from_email = sender.email or req.from_email
                req.profile_image_url = sender.profile_image_url or req.profile_image_url
            else:
                logging.warning(f"친구 요청 발신자 문서 없음 (from: {req.from_uid}, to: {uid})")
            results.append(req.to_dict())

        results.sort(key=lambda r: r['timestamp'] or EPOCH, reverse=True)
        return results

    def count_pending_requests(self, uid: str) -> int:
        query = paths.request_list(self.db, uid).where(
            filter=FieldFilter("status", "==", FriendRequestStatus.PENDING.value)
        )
        return sum(1 for _ in query.stream())

    def accept_request(self, uid: str, from_uid: str) -> None:
        """
        친구 요청을 수락합니다.
        요청 삭제와 양방향 FriendEdge 생성을 하나의 배치로 커밋합니다.
        """
        request_ref = self._request_ref(uid, from_uid)
        if not request_ref.get().exists:
            raise FriendRequestNotFoundError(from_uid, uid)

        sender = self._get_user(from_uid)
        receiver = self._get_user(uid)

        writes = [(from_uid, 'delete', request_ref, None)]
        writes.extend(self.friend_service.friendship_writes(sender, receiver))
        try:
            commit_atomic(self.db, writes)
            logging.info(f"친구 요청 수락 완료: {from_uid} -> {uid}")
        except Exception as e:
            logging.error(f"친구 요청 수락 실패 ({from_uid} -> {uid}): {e}", exc_info=True)
            raise

    def reject_request(self, uid: str, from_uid: str) -> None:
        """친구 요청을 거절합니다. 요청 문서 하나만 삭제하고 친구 관계는 만들지 않습니다."""
        request_ref = self._request_ref(uid, from_uid)
        if not request_ref.get().exists:
            raise FriendRequestNotFoundError(from_uid, uid)
        request_ref.delete()
        logging.info(f"친구 요청 거절 완료: {from_uid} -> {uid}")

    def cancel_request(self, from_uid: str, to_uid: str) -> None:
        """보낸 사람이 대기 중인 요청을 취소합니다."""
        request_ref = self._request_ref(to_uid, from_uid)
        if not request_ref.get().exists:
            raise FriendRequestNotFoundError(from_uid, to_uid)
        request_ref.delete()
        logging.info(f"친구 요청 취소 완료: {from_uid} -> {to_uid}")

    def get_request_status(self, from_uid: str, to_uid: str) -> str:
        """상대방과의 관계 상태: 'friends' | 'pending' | 'none'"""
        if self.friend_service.are_friends(from_uid, to_uid):
            return "friends"
        if self._request_ref(to_uid, from_uid).get().exists:
            return "pending"
        return "none"
