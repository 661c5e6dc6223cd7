# app/api/prompts/services.py
import logging
from typing import Optional, Dict, Any, List, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.api.friends.services import FriendService
from app.core import collections as paths
from app.core.errors import PromptNotAvailableError, PromptResponseNotFoundError, UserNotFoundError
from app.models.prompt import Prompt, PromptResponse
from app.models.read_cursor import ReadCursor
from app.models.user import User
from app.services.firestore_service import add_document
from app.utils.datetime_utils import DateTimeUtils

class PromptService:
    """
    '오늘의 질문' 답변 작성, 친구 피드 조회, 좋아요 토글을 담당하는 서비스 클래스.
    사용자별 '현재 답변'은 timestamp가 가장 최신인 response_to_prompt 문서입니다.
    """
    def __init__(self, db, friend_service: FriendService, current_prompt_id: str = 'currentPrompt'):
        self.db = db
        self.users_ref = self.db.collection(paths.USERS)
        self.responses_ref = self.db.collection(paths.RESPONSE_TO_PROMPT)
        self.prompt_ref = self.db.collection(paths.PROMPTS).document(current_prompt_id)
        self.friend_service = friend_service

    def get_current_prompt(self) -> Prompt:
        doc = self.prompt_ref.get()
        if not doc.exists:
            raise PromptNotAvailableError()
        return Prompt.from_dict(doc.to_dict())

    def submit_response(self, uid: str, text: str) -> PromptResponse:
        """
        답변을 새 문서로 저장한 뒤 users/{uid}.hasPosted 를 true로 설정합니다.
        hasPosted가 설정되어야 친구 피드가 열립니다.
        """
        user_ref = self.users_ref.document(uid)
        if not user_ref.get().exists:
            raise UserNotFoundError(uid)

        response = PromptResponse(response_id="", uid=uid, text=text)
        response.response_id = add_document(self.responses_ref, response.to_dict())
        user_ref.update({'hasPosted': True})
        logging.info(f"오늘의 질문 답변 등록 완료 (uid: {uid}, response_id: {response.response_id})")
        return response

    def get_latest_response(self, uid: str) -> Optional[PromptResponse]:
        query = (
            self.responses_ref
            .where(filter=FieldFilter('uid', '==', uid))
            .order_by('timestamp', direction=firestore.Query.DESCENDING)
            .limit(1)
        )
        docs = list(query.stream())
        if not docs:
            return None
        return PromptResponse.from_dict(docs[0].to_dict(), docs[0].id)

    def _get_read_cursor(self, uid: str) -> ReadCursor:
        doc = self.db.collection(paths.READ_CURSORS).document(uid).get()
        return ReadCursor.from_dict(doc.to_dict() if doc.exists else None)

    def _to_feed_item(self, response: PromptResponse, author: Dict[str, Any],
                      viewer_uid: str, cursor: ReadCursor) -> Dict[str, Any]:
        return {
            'responseId': response.response_id,
            'uid': response.uid,
            'text': response.text,
            'likes': response.likes,
            'likedByCurrentUser': viewer_uid in response.liked_by,
            'timestamp': DateTimeUtils.to_iso_string(response.timestamp),
            'isUnseen': response.uid != viewer_uid and response.timestamp > cursor.last_checked_timestamp,
            'author': author,
        }

    def get_feed(self, uid: str) -> Dict[str, Any]:
        """
        본인과 친구들의 최신 답변을 모아 최신순으로 반환합니다.
        본인이 아직 답변하지 않았다면 조회는 하되 locked 상태의 빈 목록을 반환합니다.
        """
        user_doc = self.users_ref.document(uid).get()
        if not user_doc.exists:
            raise UserNotFoundError(uid)
        me = User.from_dict(user_doc.to_dict(), uid=uid)
        cursor = self._get_read_cursor(uid)

        entries: List[Tuple[PromptResponse, Dict[str, Any]]] = []
        mine = self.get_latest_response(uid)
        if mine:
            entries.append((mine, me.public_snapshot()))

        for friend in self.friend_service.list_friends(uid):
            latest = self.get_latest_response(friend.uid)
            if latest is None:
                continue
            author = {
                'uid': friend.uid,
                'email': friend.email,
                'username': friend.username,
                'profileImageUrl': friend.profile_image_url,
            }
            entries.append((latest, author))

        if not me.has_posted:
            logging.info(f"피드 잠김: 아직 답변하지 않은 사용자 (uid: {uid})")
            return {'locked': True, 'responses': []}

        entries.sort(key=lambda entry: entry[0].timestamp, reverse=True)
        return {
            'locked': False,
            'responses': [self._to_feed_item(resp, author, uid, cursor) for resp, author in entries],
        }

    def toggle_like(self, uid: str, response_id: str) -> Dict[str, Any]:
        """
        답변 좋아요를 누르거나 취소합니다.
        likes 증감과 likedBy 변경을 하나의 트랜잭션에서 처리하여 likes == len(likedBy)를 유지합니다.
        """
        response_ref = self.responses_ref.document(response_id)

        @firestore.transactional
        def _toggle_in_transaction(transaction) -> Tuple[bool, int]:
            snapshot = response_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise PromptResponseNotFoundError(response_id)
            response = PromptResponse.from_dict(snapshot.to_dict(), snapshot.id)

            if uid in response.liked_by:
                transaction.update(response_ref, {
                    'likes': firestore.Increment(-1),
                    'likedBy': firestore.ArrayRemove([uid]),
                    'latestLikeTime': DateTimeUtils.now(),
                })
                return False, max(response.likes - 1, 0)

            transaction.update(response_ref, {
                'likes': firestore.Increment(1),
                'likedBy': firestore.ArrayUnion([uid]),
                'latestLikeTime': DateTimeUtils.now(),
            })
            return True, response.likes + 1

        try:
            liked, likes = _toggle_in_transaction(self.db.transaction())
        except PromptResponseNotFoundError:
            raise
        except Exception as e:
            logging.error(f"좋아요 토글 트랜잭션 실패 (uid: {uid}, response_id: {response_id}): {e}", exc_info=True)
            raise

        logging.info(f"좋아요 {'추가' if liked else '취소'} (uid: {uid}, response_id: {response_id})")
        return {'liked': liked, 'likes': likes}
