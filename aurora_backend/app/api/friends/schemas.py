# app/api/friends/schemas.py
from marshmallow import Schema, fields, validates_schema, ValidationError

class FriendResponseSchema(Schema):
    """GET /api/friends 목록의 각 항목. friend_list 문서의 필드를 그대로 노출합니다."""
    uid = fields.Str(required=True)
    email = fields.Str()
    username = fields.Str()
    profileImageUrl = fields.Str()
    isPinned = fields.Bool()
    isMuted = fields.Bool()
    hasUnseenLatestMessage = fields.Bool()
    latestMessageTimestamp = fields.DateTime(allow_none=True)
    createdAt = fields.DateTime()

class FriendSettingsSchema(Schema):
    """PATCH /api/friends/{uid}/settings 요청 본문."""
    is_pinned = fields.Bool()
    is_muted = fields.Bool()

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("is_pinned 또는 is_muted 중 하나는 필요합니다.")
