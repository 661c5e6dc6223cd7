# app/api/prompts/schemas.py
from marshmallow import Schema, fields, validate

class PromptSchema(Schema):
    text = fields.Str(required=True)
    updatedAt = fields.DateTime(allow_none=True)

class ResponseCreateSchema(Schema):
    """POST /api/prompts/responses 요청 본문."""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000))

class PromptResponseSchema(Schema):
    """작성 직후 반환되는 내 답변."""
    responseId = fields.Str(required=True)
    uid = fields.Str(required=True)
    text = fields.Str(required=True)
    likes = fields.Int()
    likedBy = fields.List(fields.Str())
    timestamp = fields.DateTime()
