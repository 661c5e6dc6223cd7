# app/api/saved_messages/services.py
import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, List, Optional

from firebase_admin import firestore

from app.core import collections as paths
from app.core.errors import SavedMessageNotFoundError
from app.models.saved_message import SavedMessage
from app.services.firestore_service import add_document
from app.utils.datetime_utils import DateTimeUtils

class SavedMessageService:
    """
    휘발성 채팅에서 사용자가 저장한 메시지(saving_messages/{from_id}/{to_id})를 관리합니다.
    캘린더 화면을 위해 UTC 날짜(YYYY-MM-DD) 단위 그룹핑을 제공합니다.
    """
    def __init__(self, db):
        self.db = db

    def save_message(self, from_id: str, to_id: str, sender: str, text: str,
                     timestamp: Optional[datetime] = None, notify_partner: bool = True) -> SavedMessage:
        """
        채팅 메시지를 저장합니다.
        :param timestamp: 원래 메시지가 보내진 시각. 없으면 지금 시각을 사용합니다.
        :param notify_partner: 상대방 화면에 '저장됨' 표시를 띄우도록 saving_trigger를 켭니다.
        """
        message = SavedMessage(
            message_id="", sender=sender, text=text,
            timestamp=DateTimeUtils.ensure_utc(timestamp) if timestamp else DateTimeUtils.now(),
            from_id=from_id, to_id=to_id,
        )
        message.message_id = add_document(paths.saved_messages(self.db, from_id, to_id), message.to_dict())
        if notify_partner:
            paths.saving_trigger(self.db, to_id, from_id).set({'triggering': True}, merge=True)
            logging.info(f"저장 알림 트리거 설정 ({from_id} -> {to_id})")
        return message

    def get_saving_trigger(self, uid: str, partner_uid: str) -> bool:
        """partner_uid가 나와의 대화에서 메시지를 저장했는지 여부"""
        doc = paths.saving_trigger(self.db, uid, partner_uid).get()
        return bool(doc.exists and (doc.to_dict() or {}).get('triggering', False))

    def reset_saving_trigger(self, uid: str, partner_uid: str) -> None:
        paths.saving_trigger(self.db, uid, partner_uid).set({'triggering': False}, merge=True)

    def list_saved_messages(self, from_id: str, to_id: str) -> List[SavedMessage]:
        query = paths.saved_messages(self.db, from_id, to_id).order_by(
            'timestamp', direction=firestore.Query.ASCENDING
        )
        return [SavedMessage.from_dict(doc.to_dict(), doc.id) for doc in query.stream()]

    def saved_messages_by_date(self, from_id: str, to_id: str) -> Dict[str, List[SavedMessage]]:
        grouped: Dict[str, List[SavedMessage]] = OrderedDict()
        for message in self.list_saved_messages(from_id, to_id):
            grouped.setdefault(DateTimeUtils.to_date_string(message.timestamp), []).append(message)
        return grouped

    def list_saved_messages_on(self, from_id: str, to_id: str, day: date) -> List[SavedMessage]:
        return self.saved_messages_by_date(from_id, to_id).get(DateTimeUtils.to_date_string(day), [])

    def delete_saved_message(self, from_id: str, to_id: str, message_id: str) -> None:
        doc_ref = paths.saved_messages(self.db, from_id, to_id).document(message_id)
        if not doc_ref.get().exists:
            raise SavedMessageNotFoundError(message_id)
        doc_ref.delete()
        logging.info(f"저장 메시지 삭제 완료 ({from_id} -> {to_id}, id: {message_id})")
