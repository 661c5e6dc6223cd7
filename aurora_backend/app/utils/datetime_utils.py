# app/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 유틸리티 모듈

- 모든 시각은 UTC timezone-aware datetime으로 다룹니다.
- Firestore Timestamp(DatetimeWithNanoseconds) 읽기/쓰기 변환을 제공합니다.
- 피드 정렬, 읽음 커서 비교, 캘린더 그룹핑에 쓰이는 변환을 한 곳에 모읍니다.
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 정렬 시 timestamp가 없는 문서를 맨 뒤로 보내기 위한 기준값
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """timezone-naive면 UTC로 간주하고, aware면 UTC로 변환"""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)
            return DateTimeUtils.ensure_utc(dt)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def parse_date_string(date_string: str) -> date:
        """YYYY-MM-DD 등 날짜 문자열을 date 객체로 파싱"""
        try:
            if not date_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")
            return dateutil_parser.parse(date_string).date()
        except Exception as e:
            logger.error(f"날짜 문자열 파싱 실패: {date_string} - {e}")
            raise ValueError(f"잘못된 날짜 형식입니다: {date_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 Z 접미사가 붙은 ISO 문자열로 변환"""
        try:
            return DateTimeUtils.ensure_utc(dt).isoformat().replace('+00:00', 'Z')
        except Exception as e:
            logger.error(f"ISO 문자열 변환 실패: {dt} - {e}")
            raise ValueError(f"datetime 객체를 ISO 문자열로 변환할 수 없습니다: {dt}")

    @staticmethod
    def to_date_string(d: date) -> str:
        """date/datetime 객체를 YYYY-MM-DD 형식 문자열로 변환"""
        if isinstance(d, datetime):
            d = DateTimeUtils.ensure_utc(d).date()
        return d.strftime('%Y-%m-%d')

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        elif isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def to_datetime(value: Any) -> Optional[datetime]:
        """
        Firestore에서 읽은 timestamp 값을 UTC datetime으로 변환합니다.
        값이 없거나 해석할 수 없으면 None을 반환합니다. (읽기 경로에서는 예외를 던지지 않음)
        """
        if value is None or value == "":
            return None
        try:
            if isinstance(value, datetime):
                return DateTimeUtils.ensure_utc(value)
            if isinstance(value, (int, float)):
                return DateTimeUtils.from_timestamp_seconds(value)
            if isinstance(value, str):
                return DateTimeUtils.parse_iso_datetime(value)
            if hasattr(value, 'timestamp'):
                return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            logger.warning(f"timestamp 변환 실패, None으로 처리합니다: {value!r} - {e}")
            return None
        logger.warning(f"알 수 없는 timestamp 타입입니다: {type(value)}")
        return None

    @staticmethod
    def from_timestamp_seconds(seconds: float) -> datetime:
        """Unix timestamp(초)를 UTC datetime으로 변환"""
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc)

    @staticmethod
    def to_timestamp_seconds(dt: datetime) -> float:
        """datetime을 Unix timestamp(초)로 변환"""
        return DateTimeUtils.ensure_utc(dt).timestamp()


# 편의를 위한 글로벌 함수들
def now() -> datetime:
    """현재 UTC 시간 반환"""
    return DateTimeUtils.now()

def parse_iso(iso_string: str) -> datetime:
    """ISO 문자열을 datetime으로 파싱"""
    return DateTimeUtils.parse_iso_datetime(iso_string)

def to_iso(dt: datetime) -> str:
    """datetime을 ISO 문자열로 변환"""
    return DateTimeUtils.to_iso_string(dt)

def for_firestore(obj: Any) -> Any:
    """Firestore 저장용 변환"""
    return DateTimeUtils.for_firestore(obj)

def to_datetime(value: Any) -> Optional[datetime]:
    """Firestore 읽기용 변환"""
    return DateTimeUtils.to_datetime(value)
