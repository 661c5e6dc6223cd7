# app/models/basic_info.py
from dataclasses import dataclass, asdict
from typing import Dict, Any

@dataclass
class BasicInfo:
    """
    'basic_information/{uid}/information/profile' 문서 구조.
    users 문서와 별개로 관리되는 확장 프로필(소개, 나이, 대명사, 지역 등).
    birthdate는 ISO 문자열로 저장합니다.
    """
    name: str = ""
    username: str = ""
    email: str = ""
    bio: str = ""
    age: str = ""
    gender: str = ""
    pronouns: str = ""
    location: str = ""
    birthdate: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BasicInfo":
        data = data or {}
        return cls(**{
            key: "" if data.get(key) is None else str(data.get(key))
            for key in cls.__dataclass_fields__
        })

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
