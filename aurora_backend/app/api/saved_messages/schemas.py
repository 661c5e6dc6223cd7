# app/api/saved_messages/schemas.py
from marshmallow import Schema, fields, validate

class SavedMessageCreateSchema(Schema):
    """
    POST /api/saved-messages/{to_id} 요청 본문.
    - sender: 원래 메시지를 보낸 사람의 표시 이름
    - timestamp: 원래 메시지가 보내진 시각 (캘린더 날짜 기준). 생략하면 저장 시각
    - for_self: 내가 보낸 메시지를 저장하는 경우 상대방에게 저장 알림을 보내지 않습니다.
    """
    sender = fields.Str(required=True)
    text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    timestamp = fields.DateTime(load_default=None)
    for_self = fields.Bool(load_default=False)

class SavedMessageResponseSchema(Schema):
    messageId = fields.Str(required=True)
    sender = fields.Str()
    text = fields.Str()
    timestamp = fields.DateTime()
    fromId = fields.Str()
    toId = fields.Str()
