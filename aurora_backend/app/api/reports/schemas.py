# app/api/reports/schemas.py
from marshmallow import Schema, fields, validate

class ReportCreateSchema(Schema):
    """
    POST /api/reports
    scope='user'는 다른 사용자 신고(reports), scope='self'는 본인 관련 신고(reports_for_self)입니다.
    """
    reportee_uid = fields.Str(required=True)
    content = fields.Str(required=True, validate=validate.Length(min=1, max=1000))
    scope = fields.Str(load_default="user", validate=validate.OneOf(["user", "self"]))
