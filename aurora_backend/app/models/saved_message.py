# app/models/saved_message.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any

from app.utils.datetime_utils import DateTimeUtils, EPOCH

@dataclass
class SavedMessage:
    """
    'saving_messages/{from_id}/{to_id}/{message_id}' 문서 구조.
    휘발성 채팅 스트림에서 사용자가 명시적으로 저장한 메시지.
    timestamp는 저장한 시각이 아니라 원래 메시지가 보내진 시각입니다.
    """
    message_id: str
    sender: str
    text: str
    timestamp: datetime = field(default_factory=DateTimeUtils.now)
    from_id: str = ""
    to_id: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], message_id: str) -> "SavedMessage":
        data = data or {}
        return cls(
            message_id=message_id,
            sender=data.get("sender") or "",
            text=data.get("text") or "",
            timestamp=DateTimeUtils.to_datetime(data.get("timestamp")) or EPOCH,
            from_id=data.get("fromId") or "",
            to_id=data.get("toId") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp,
            "fromId": self.from_id,
            "toId": self.to_id,
        }
