# app/models/friend.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils


@dataclass
class FriendEdge:
    """
    'friends/{owner_uid}/friend_list/{uid}' 문서 구조.
    owner 입장에서 본 상대방(uid)의 공개 프로필 사본과, owner 전용 설정(고정/음소거)을 담습니다.
    """
    uid: str
    email: str = ""
    username: str = ""
    profile_image_url: str = ""
    is_pinned: bool = False
    is_muted: bool = False
    has_unseen_latest_message: bool = False
    latest_message_timestamp: Optional[datetime] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_user(cls, user: User) -> "FriendEdge":
        return cls(
            uid=user.uid,
            email=user.email,
            username=user.username,
            profile_image_url=user.profile_image_url,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], uid: Optional[str] = None) -> "FriendEdge":
        data = data or {}
        return cls(
            uid=data.get("uid") or uid or "",
            email=data.get("email") or "",
            username=data.get("username") or "",
            profile_image_url=data.get("profileImageUrl") or "",
            is_pinned=bool(data.get("isPinned", False)),
            is_muted=bool(data.get("isMuted", False)),
            has_unseen_latest_message=bool(data.get("hasUnseenLatestMessage", False)),
            latest_message_timestamp=DateTimeUtils.to_datetime(data.get("latestMessageTimestamp")),
            created_at=DateTimeUtils.to_datetime(data.get("createdAt")) or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "username": self.username,
            "profileImageUrl": self.profile_image_url,
            "isPinned": self.is_pinned,
            "isMuted": self.is_muted,
            "hasUnseenLatestMessage": self.has_unseen_latest_message,
            "latestMessageTimestamp": self.latest_message_timestamp,
            "createdAt": self.created_at,
        }
