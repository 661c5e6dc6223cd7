# app/models/read_cursor.py
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any

from app.utils.datetime_utils import DateTimeUtils, EPOCH

@dataclass
class ReadCursor:
    """
    'read_cursors/{uid}' 문서 구조.
    피드 탭을 마지막으로 확인한 시각과 그 시점의 내 답변 좋아요 수를 서버에 보관합니다.
    pending_like는 '새 좋아요' 배지를 피드를 열 때까지 유지하기 위한 플래그입니다.
    """
    last_checked_timestamp: datetime = EPOCH
    last_likes_count: int = 0
    pending_like: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReadCursor":
        data = data or {}
        return cls(
            last_checked_timestamp=DateTimeUtils.to_datetime(data.get("lastCheckedTimestamp")) or EPOCH,
            last_likes_count=int(data.get("lastLikesCount") or 0),
            pending_like=bool(data.get("pendingLike", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastCheckedTimestamp": self.last_checked_timestamp,
            "lastLikesCount": self.last_likes_count,
            "pendingLike": self.pending_like,
        }
