# app/api/auth/schemas.py
from marshmallow import Schema, fields

class SessionRequestSchema(Schema):
    """Firebase ID 토큰을 서버 세션으로 교환하는 요청 스키마"""
    id_token = fields.Str(
        required=True,
        metadata={"description": "클라이언트 Firebase Auth 로그인으로 받은 ID 토큰"}
    )

class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
