# app/api/users/schemas.py
from marshmallow import Schema, fields, validate

class BasicInfoSchema(Schema):
    """
    GET/PUT /api/users/me/basic-info
    모든 값은 문자열로 저장됩니다. birthdate는 ISO 날짜 문자열입니다.
    """
    name = fields.Str(validate=validate.Length(max=50))
    username = fields.Str(validate=validate.Length(min=1, max=30))
    email = fields.Str()
    bio = fields.Str(validate=validate.Length(max=300))
    age = fields.Str()
    gender = fields.Str()
    pronouns = fields.Str()
    location = fields.Str()
    birthdate = fields.Str()

class UserPublicResponseSchema(Schema):
    """
    GET /api/users/{uid}
    다른 사용자에게 보여줄 수 있는 공개 정보만 포함합니다. (fcmToken 등 제외)
    """
    uid = fields.Str(required=True)
    email = fields.Str()
    username = fields.Str()
    profileImageUrl = fields.Str()
    basicInfo = fields.Nested(BasicInfoSchema)
    friendshipStatus = fields.Str()

class MyProfileResponseSchema(Schema):
    """GET /api/users/me"""
    uid = fields.Str(required=True)
    email = fields.Str()
    username = fields.Str()
    profileImageUrl = fields.Str()
    hasPosted = fields.Bool()
    createdAt = fields.DateTime()

class UsernameUpdateSchema(Schema):
    username = fields.Str(required=True, validate=validate.Length(min=1, max=30))

class ProfileImageUpdateSchema(Schema):
    """PATCH /api/users/me/profile-image. file_path는 업로드 URL 발급 시 받은 경로입니다."""
    file_path = fields.Str(required=True, error_messages={"required": "file_path는 필수 항목입니다."})

class FCMTokenSchema(Schema):
    """
    POST /api/users/me/fcm-token
    FCM 토큰 등록/업데이트 요청 본문의 유효성을 검사하는 스키마.
    """
    fcm_token = fields.Str(required=True, error_messages={"required": "fcm_token은 필수 항목입니다."})
