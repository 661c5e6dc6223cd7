# app/core/errors.py
"""
도메인 예외 정의.

서비스 계층은 이 예외들을 발생시키고, app/__init__.py의 전역 에러 핸들러가
{"error_code", "message"} 형식의 JSON 응답으로 변환합니다.
"""
from typing import Optional


class AppError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    message: str = "서버 내부에서 예상치 못한 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None):
        if message:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


class UserNotFoundError(AppError):
    status_code = 404
    error_code = "USER_NOT_FOUND"

    def __init__(self, uid: str):
        super().__init__(f"사용자를 찾을 수 없습니다. (uid: {uid})")


class FriendshipNotFoundError(AppError):
    status_code = 404
    error_code = "FRIENDSHIP_NOT_FOUND"

    def __init__(self, uid: str, friend_uid: str):
        super().__init__(f"친구 관계가 존재하지 않습니다. ({uid} -> {friend_uid})")


class FriendshipAlreadyExistsError(AppError):
    status_code = 409
    error_code = "ALREADY_FRIENDS"

    def __init__(self, uid: str, friend_uid: str):
        super().__init__(f"이미 친구입니다. ({uid} <-> {friend_uid})")


class FriendRequestNotFoundError(AppError):
    status_code = 404
    error_code = "FRIEND_REQUEST_NOT_FOUND"

    def __init__(self, from_uid: str, to_uid: str):
        super().__init__(f"친구 요청을 찾을 수 없습니다. ({from_uid} -> {to_uid})")


class FriendRequestAlreadyExistsError(AppError):
    status_code = 409
    error_code = "FRIEND_REQUEST_ALREADY_EXISTS"

    def __init__(self, from_uid: str, to_uid: str):
        super().__init__(f"이미 대기 중인 친구 요청이 있습니다. ({from_uid} -> {to_uid})")


class InvalidFriendRequestError(AppError):
    status_code = 400
    error_code = "INVALID_FRIEND_REQUEST"


class PromptNotAvailableError(AppError):
    status_code = 404
    error_code = "PROMPT_NOT_AVAILABLE"
    message = "오늘의 질문이 아직 등록되지 않았습니다."


class PromptResponseNotFoundError(AppError):
    status_code = 404
    error_code = "RESPONSE_NOT_FOUND"

    def __init__(self, response_id: str):
        super().__init__(f"답변을 찾을 수 없습니다. (id: {response_id})")


class SavedMessageNotFoundError(AppError):
    status_code = 404
    error_code = "SAVED_MESSAGE_NOT_FOUND"

    def __init__(self, message_id: str):
        super().__init__(f"저장된 메시지를 찾을 수 없습니다. (id: {message_id})")
