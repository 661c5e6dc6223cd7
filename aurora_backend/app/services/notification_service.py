# app/services/notification_service.py
import logging
import threading
from typing import Callable, Dict, Any, Optional

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.api.friends.services import FriendService
from app.api.prompts.services import PromptService
from app.core import collections as paths
from app.models.read_cursor import ReadCursor
from app.utils.datetime_utils import DateTimeUtils

class ActivityService:
    """
    피드 탭의 '새 활동' 배지를 계산하는 공용 서비스 클래스.
    - 읽음 커서는 기기 로컬이 아니라 read_cursors/{uid} 문서에 저장됩니다.
    - 새 좋아요 감지는 pendingLike 플래그로 피드를 열 때(mark_seen)까지 유지됩니다.
    """
    def __init__(self, db, friend_service: FriendService, prompt_service: PromptService):
        self.db = db
        self.cursors_ref = self.db.collection(paths.READ_CURSORS)
        self.responses_ref = self.db.collection(paths.RESPONSE_TO_PROMPT)
        self.friend_service = friend_service
        self.prompt_service = prompt_service

    def get_cursor(self, uid: str) -> ReadCursor:
        doc = self.cursors_ref.document(uid).get()
        return ReadCursor.from_dict(doc.to_dict() if doc.exists else None)

    def _save_cursor(self, uid: str, cursor: ReadCursor) -> None:
        self.cursors_ref.document(uid).set(DateTimeUtils.for_firestore(cursor.to_dict()), merge=True)

    def _has_new_friend_post(self, uid: str, cursor: ReadCursor) -> bool:
        friend_uids = set(self.friend_service.list_friend_uids(uid))
        if not friend_uids:
            return False
        query = self.responses_ref.where(
            filter=FieldFilter('timestamp', '>', cursor.last_checked_timestamp)
        )
        for doc in query.stream():
            author = (doc.to_dict() or {}).get('uid')
            if author != uid and author in friend_uids:
                return True
        return False

    def _record_likes(self, uid: str, current_likes: int) -> ReadCursor:
        """
        좋아요 수가 기억된 값을 넘었을 때만 lastLikesCount/pendingLike를 올립니다.
        커서 읽기, 비교, 쓰기를 한 트랜잭션으로 묶고 lastCheckedTimestamp는 쓰지 않으므로
        다른 스레드의 mark_seen을 덮어쓰지 않습니다.
        """
        cursor_ref = self.cursors_ref.document(uid)

        @firestore.transactional
        def _record_in_transaction(transaction) -> ReadCursor:
            snapshot = cursor_ref.get(transaction=transaction)
            cursor = ReadCursor.from_dict(snapshot.to_dict() if snapshot.exists else None)
            if current_likes > cursor.last_likes_count:
                logging.info(f"새 좋아요 감지 (uid: {uid}, {cursor.last_likes_count} -> {current_likes})")
                cursor.last_likes_count = current_likes
                cursor.pending_like = True
                transaction.set(cursor_ref, {'lastLikesCount': current_likes, 'pendingLike': True}, merge=True)
            return cursor

        return _record_in_transaction(self.db.transaction())

    def evaluate(self, uid: str) -> Dict[str, bool]:
        """
        현재 배지 상태를 계산합니다.

        - hasNewPost: 마지막 확인 이후 친구(본인 제외)가 올린 답변이 있는지
        - hasNewLike: 내 최신 답변의 좋아요 수가 기억된 값보다 늘었는지 (한 번 감지되면 mark_seen까지 유지)
        좋아요 취소로 줄어든 수는 기억하지 않습니다. 같은 수까지 다시 눌려도 새 좋아요가 아닙니다.
        """
        latest = self.prompt_service.get_latest_response(uid)
        cursor = self._record_likes(uid, latest.likes if latest else 0)
        has_new_post = self._has_new_friend_post(uid, cursor)

        return {
            'hasNewPost': has_new_post,
            'hasNewLike': cursor.pending_like,
            'hasUnseenActivity': has_new_post or cursor.pending_like,
        }

    def mark_seen(self, uid: str) -> ReadCursor:
        """피드를 확인한 시점으로 커서를 옮기고 현재 좋아요 수를 기록합니다."""
        latest = self.prompt_service.get_latest_response(uid)
        cursor = ReadCursor(
            last_checked_timestamp=DateTimeUtils.now(),
            last_likes_count=latest.likes if latest else 0,
            pending_like=False,
        )
        self._save_cursor(uid, cursor)
        logging.info(f"피드 확인 처리 (uid: {uid})")
        return cursor


class ActivityWatcher:
    """
    response_to_prompt 변경을 on_snapshot으로 구독하여 배지 값이 바뀔 때만 콜백을 호출합니다.
    - 친구의 새 답변: timestamp > 커서 인 문서 구독
    - 내 답변의 좋아요: uid == 나 인 문서 구독
    Firestore 리스너 콜백은 별도 스레드에서 호출되므로 평가 구간을 Lock으로 보호합니다.
    """
    def __init__(self, activity_service: ActivityService, uid: str,
                 callback: Callable[[Dict[str, Any]], None]):
        self.activity_service = activity_service
        self.uid = uid
        self.callback = callback
        self._lock = threading.Lock()
        self._last_badge: Optional[bool] = None
        self._watches = []

    def start(self) -> "ActivityWatcher":
        cursor = self.activity_service.get_cursor(self.uid)
        responses_ref = self.activity_service.responses_ref
        new_posts = responses_ref.where(
            filter=FieldFilter('timestamp', '>', cursor.last_checked_timestamp)
        )
        my_responses = responses_ref.where(filter=FieldFilter('uid', '==', self.uid))
        self._watches = [
            new_posts.on_snapshot(self._on_snapshot),
            my_responses.on_snapshot(self._on_snapshot),
        ]
        logging.info(f"활동 리스너 시작 (uid: {self.uid})")
        return self

    def _on_snapshot(self, docs, changes, read_time) -> None:
        try:
            with self._lock:
                state = self.activity_service.evaluate(self.uid)
                badge = state['hasUnseenActivity']
                if badge == self._last_badge:
                    return
                self._last_badge = badge
            self.callback(state)
        except Exception as e:
            logging.error(f"활동 리스너 처리 중 오류 (uid: {self.uid}): {e}", exc_info=True)

    def stop(self) -> None:
        for watch in self._watches:
            watch.unsubscribe()
        self._watches = []
        logging.info(f"활동 리스너 종료 (uid: {self.uid})")
