# app/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from firebase_admin import auth as firebase_auth
from marshmallow import ValidationError

from app.api.auth.schemas import SessionRequestSchema, LogoutRequestSchema

auth_bp = Blueprint('auth_bp', __name__)

@auth_bp.route('/session', methods=['POST'])
def create_session():
    """Firebase ID 토큰을 검증하고 서버 JWT(access/refresh)를 발급합니다. 첫 로그인 시 회원가입 처리."""
    auth_service = current_app.services['auth']
    validated_data = SessionRequestSchema().load(request.get_json(silent=True) or {})

    try:
        user, is_new_user = auth_service.create_session(validated_data['id_token'])
    except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, ValueError) as e:
        logging.warning(f"Firebase ID 토큰 검증 실패: {e}")
        return jsonify({"error_code": "INVALID_ID_TOKEN", "message": "유효하지 않은 로그인 토큰입니다."}), 401

    return jsonify({
        "access_token": create_access_token(identity=user.uid),
        "refresh_token": create_refresh_token(identity=user.uid),
        "is_new_user": is_new_user,
        "user_info": user.public_snapshot(),
    }), 200


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    new_access_token = create_access_token(identity=get_jwt_identity())
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json(silent=True) or {})

        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        # 만료된 토큰도 무효화할 수 있도록 만료 검사는 생략합니다.
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(
            decoded_access.get('sub'),
            decoded_access['jti'], decoded_access['exp'],
            decoded_refresh['jti'], decoded_refresh['exp'],
        )
        return jsonify({"message": "로그아웃 되었습니다."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
