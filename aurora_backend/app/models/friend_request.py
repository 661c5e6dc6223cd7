# app/models/friend_request.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
import logging

from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils

class FriendRequestStatus(Enum):
    """친구 요청 상태. 수락/거절 시 문서가 삭제되므로 저장되는 값은 PENDING뿐입니다."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

@dataclass
class FriendRequest:
    """
    'friend_request/{to_uid}/request_list/{from_uid}' 문서 구조.
    문서 ID를 보낸 사람의 uid로 고정하여 같은 상대에게 중복 요청이 쌓이지 않게 합니다.
    """
    from_uid: str
    from_email: str = ""
    username: str = ""
    profile_image_url: str = ""
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    timestamp: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_sender(cls, sender: User) -> "FriendRequest":
        return cls(
            from_uid=sender.uid,
            from_email=sender.email,
            username=sender.username,
            profile_image_url=sender.profile_image_url,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "FriendRequest":
        data = data or {}
        status_str = data.get("status") or FriendRequestStatus.PENDING.value
        try:
            status = FriendRequestStatus(status_str)
        except ValueError:
            logging.warning(f"알 수 없는 친구 요청 상태 '{status_str}' (doc: {doc_id}). PENDING으로 처리합니다.")
            status = FriendRequestStatus.PENDING

        return cls(
            from_uid=data.get("fromUid") or doc_id or "",
            from_email=data.get("fromEmail") or "",
            username=data.get("username") or "",
            profile_image_url=data.get("profileImageUrl") or "",
            status=status,
            timestamp=DateTimeUtils.to_datetime(data.get("timestamp")) or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromUid": self.from_uid,
            "fromEmail": self.from_email,
            "username": self.username,
            "profileImageUrl": self.profile_image_url,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
