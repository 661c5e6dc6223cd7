# app/api/friend_requests/schemas.py
from marshmallow import Schema, fields, validate

class FriendRequestCreateSchema(Schema):
    """POST /api/friend-requests 요청 본문."""
    to_uid = fields.Str(required=True, validate=validate.Length(min=1),
                        error_messages={"required": "to_uid는 필수 항목입니다."})

class FriendRequestResponseSchema(Schema):
    """받은 친구 요청 응답. 보낸 사람의 이름/사진은 현재 프로필 기준입니다."""
    fromUid = fields.Str(required=True)
    fromEmail = fields.Str()
    username = fields.Str()
    profileImageUrl = fields.Str()
    status = fields.Str()
    timestamp = fields.DateTime()
