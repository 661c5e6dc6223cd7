# app/api/uploads/routes.py

import logging
from flask import request, jsonify, Blueprint, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import Schema, fields, validate

uploads_bp = Blueprint('uploads', __name__)

class ProfileImageUploadSchema(Schema):
    """프로필 이미지 업로드 URL 발급 요청 스키마"""
    filename = fields.Str(required=True)
    content_type = fields.Str(
        required=True,
        validate=validate.OneOf(["image/jpeg", "image/png", "image/heic", "image/webp"])
    )


@uploads_bp.route('/profile-image-url', methods=['POST'])
@jwt_required()
def get_profile_image_upload_url():
    """
    프로필 이미지 업로드용 Pre-signed URL을 발급합니다.
    클라이언트는 이 URL로 직접 PUT 업로드한 뒤, 받은 file_path로
    PATCH /api/users/me/profile-image 를 호출합니다.
    """
    storage_service = current_app.services['storage']
    user_id = get_jwt_identity()
    data = ProfileImageUploadSchema().load(request.get_json(silent=True) or {})

    try:
        url_info = storage_service.generate_upload_url(user_id, "user_profile", data['filename'], data['content_type'])
        return jsonify(url_info), 200
    except Exception as e:
        logging.error(f"Pre-signed URL 생성 중 서버 오류 발생 (uid: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "URL_GENERATION_FAILED", "message": "URL 생성 중 서버 오류가 발생했습니다."}), 500
