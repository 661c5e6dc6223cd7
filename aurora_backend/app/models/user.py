# app/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from app.utils.datetime_utils import DateTimeUtils

# 친구 목록(friend_list) 사본에 복제되는 공개 프로필 필드
PUBLIC_PROFILE_FIELDS = ("uid", "email", "username", "profileImageUrl")


@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firebase Auth uid와 동일합니다.
    """
    uid: str
    email: str = ""
    username: str = ""
    profile_image_url: str = ""
    fcm_token: str = ""
    has_posted: bool = False  # 오늘의 질문 피드 열람 조건
    latest_message_timestamp: Optional[datetime] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], uid: Optional[str] = None) -> "User":
        """
        Firestore 문서 딕셔너리로부터 User를 생성합니다.
        누락된 필드는 빈 문자열/False로 채웁니다.
        """
        data = data or {}
        return cls(
            uid=data.get("uid") or uid or "",
            email=data.get("email") or "",
            username=data.get("username") or "",
            profile_image_url=data.get("profileImageUrl") or "",
            fcm_token=data.get("fcmToken") or "",
            has_posted=bool(data.get("hasPosted", False)),
            latest_message_timestamp=DateTimeUtils.to_datetime(data.get("latestMessageTimestamp")),
            created_at=DateTimeUtils.to_datetime(data.get("createdAt")) or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "username": self.username,
            "profileImageUrl": self.profile_image_url,
            "fcmToken": self.fcm_token,
            "hasPosted": self.has_posted,
            "latestMessageTimestamp": self.latest_message_timestamp,
            "createdAt": self.created_at,
        }

    def public_snapshot(self) -> Dict[str, Any]:
        """friend_list / friend_request 문서에 복제할 공개 필드 스냅샷."""
        return {
            "uid": self.uid,
            "email": self.email,
            "username": self.username,
            "profileImageUrl": self.profile_image_url,
        }
