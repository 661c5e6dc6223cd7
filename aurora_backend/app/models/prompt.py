# app/models/prompt.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from app.utils.datetime_utils import DateTimeUtils, EPOCH

@dataclass
class Prompt:
    """'prompts/currentPrompt' 문서. 모든 사용자가 공유하는 오늘의 질문."""
    text: str
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Prompt":
        data = data or {}
        return cls(
            text=data.get("text") or "",
            updated_at=DateTimeUtils.to_datetime(data.get("updatedAt")),
        )


@dataclass
class PromptResponse:
    """
    Firestore 'response_to_prompt' 컬렉션의 문서 구조.
    사용자별 '현재 답변'은 별도 포인터 없이 timestamp가 가장 최신인 문서로 결정됩니다.
    """
    response_id: str
    uid: str
    text: str
    likes: int = 0
    liked_by: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=DateTimeUtils.now)
    latest_like_time: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], response_id: str) -> "PromptResponse":
        data = data or {}
        liked_by = data.get("likedBy") or []
        try:
            likes = int(data.get("likes") or 0)
        except (TypeError, ValueError):
            likes = 0
        return cls(
            response_id=response_id,
            uid=data.get("uid") or "",
            text=data.get("text") or "",
            likes=likes,
            liked_by=list(liked_by),
            timestamp=DateTimeUtils.to_datetime(data.get("timestamp")) or EPOCH,
            latest_like_time=DateTimeUtils.to_datetime(data.get("latestLikeTime")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "uid": self.uid,
            "text": self.text,
            "likes": self.likes,
            "likedBy": self.liked_by,
            "timestamp": self.timestamp,
        }
        if self.latest_like_time is not None:
            data["latestLikeTime"] = self.latest_like_time
        return data
