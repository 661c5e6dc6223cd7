# app/core/collections.py
"""
Firestore 컬렉션/문서 경로 상수.

Firestore에는 스키마가 없으므로 문서 경로가 곧 백엔드와의 계약입니다.
경로 문자열은 반드시 이 모듈을 통해서만 사용합니다.
"""
from google.cloud.firestore_v1.base_query import FieldFilter

USERS = "users"
FRIENDS = "friends"
FRIEND_LIST = "friend_list"
FRIEND_REQUEST = "friend_request"
REQUEST_LIST = "request_list"
BASIC_INFORMATION = "basic_information"
INFORMATION = "information"
BASIC_INFO_DOC = "profile"
RESPONSE_TO_PROMPT = "response_to_prompt"
PROMPTS = "prompts"
SAVING_MESSAGES = "saving_messages"
SAVING_TRIGGER = "saving_trigger"
TRIGGER_LIST = "trigger_list"
REPORTS = "reports"
REPORTS_FOR_SELF = "reports_for_self"
READ_CURSORS = "read_cursors"
REVOKED_TOKENS = "revoked_tokens"


def friend_list(db, owner_uid: str):
    """friends/{owner_uid}/friend_list"""
    return db.collection(FRIENDS).document(owner_uid).collection(FRIEND_LIST)


def friend_edge(db, owner_uid: str, other_uid: str):
    """friends/{owner_uid}/friend_list/{other_uid}"""
    return friend_list(db, owner_uid).document(other_uid)


def request_list(db, to_uid: str):
    """friend_request/{to_uid}/request_list"""
    return db.collection(FRIEND_REQUEST).document(to_uid).collection(REQUEST_LIST)


def basic_info(db, uid: str):
    """basic_information/{uid}/information/profile"""
    return db.collection(BASIC_INFORMATION).document(uid).collection(INFORMATION).document(BASIC_INFO_DOC)


def saved_messages(db, from_id: str, to_id: str):
    """saving_messages/{from_id}/{to_id}"""
    return db.collection(SAVING_MESSAGES).document(from_id).collection(to_id)


def saving_trigger(db, uid: str, partner_uid: str):
    """saving_trigger/{uid}/trigger_list/{partner_uid}"""
    return db.collection(SAVING_TRIGGER).document(uid).collection(TRIGGER_LIST).document(partner_uid)


def sent_requests(db, from_uid: str):
    """모든 request_list 에서 from_uid 가 보낸 요청 (collection group 쿼리)"""
    return db.collection_group(REQUEST_LIST).where(filter=FieldFilter("fromUid", "==", from_uid))
