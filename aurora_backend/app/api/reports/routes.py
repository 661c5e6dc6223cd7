# app/api/reports/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.reports.schemas import ReportCreateSchema

reports_bp = Blueprint('reports_bp', __name__)

@reports_bp.route('', methods=['POST'])
@jwt_required()
def create_report():
    report_service = current_app.services['reports']
    data = ReportCreateSchema().load(request.get_json(silent=True) or {})
    if data['scope'] == 'self':
        report_id = report_service.report_self(get_jwt_identity(), data['reportee_uid'], data['content'])
    else:
        report_id = report_service.report_user(get_jwt_identity(), data['reportee_uid'], data['content'])
    return jsonify({"report_id": report_id}), 201
