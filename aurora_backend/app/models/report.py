# app/models/report.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any

from app.utils.datetime_utils import DateTimeUtils

class ReportScope(Enum):
    """신고 대상 컬렉션. 다른 사용자 신고와 본인 프로필 관련 신고를 분리 저장합니다."""
    USER = "reports"
    SELF = "reports_for_self"

@dataclass
class Report:
    """Firestore 'reports' / 'reports_for_self' 컬렉션의 문서 구조."""
    reporter_uid: str
    reportee_uid: str
    content: str
    timestamp: datetime = field(default_factory=DateTimeUtils.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reporterUid": self.reporter_uid,
            "reporteeUid": self.reportee_uid,
            "content": self.content,
            "timestamp": self.timestamp,
        }
