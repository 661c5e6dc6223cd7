# app/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.api.users.schemas import (
    BasicInfoSchema,
    FCMTokenSchema,
    MyProfileResponseSchema,
    ProfileImageUpdateSchema,
    UserPublicResponseSchema,
    UsernameUpdateSchema,
)

users_bp = Blueprint('users_bp', __name__)

@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    user_service = current_app.services['users']
    user = user_service.get_user(get_jwt_identity())
    return jsonify(MyProfileResponseSchema().dump(user.to_dict())), 200


@users_bp.route('/search', methods=['GET'])
@jwt_required()
def search_users():
    """친구 추가 화면의 사용자 검색. username 접두어 일치, 본인/기존 친구 제외."""
    user_service = current_app.services['users']
    query = request.args.get('q', '', type=str).strip()
    limit = min(request.args.get('limit', 20, type=int), 50)
    results = user_service.search_users(get_jwt_identity(), query, limit)
    return jsonify(UserPublicResponseSchema(many=True).dump(results)), 200


@users_bp.route('/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필. 로그인 상태면 친구 관계 상태를 함께 반환합니다."""
    user_service = current_app.services['users']
    profile = user_service.get_public_profile(user_id, get_jwt_identity())
    return jsonify(UserPublicResponseSchema().dump(profile)), 200


@users_bp.route('/me/username', methods=['PATCH'])
@jwt_required()
def update_my_username():
    user_service = current_app.services['users']
    data = UsernameUpdateSchema().load(request.get_json(silent=True) or {})
    result = user_service.update_username(get_jwt_identity(), data['username'])
    return jsonify({"username": data['username'], **result}), 200


@users_bp.route('/me/profile-image', methods=['PATCH'])
@jwt_required()
def update_my_profile_image():
    """
    업로드가 끝난 파일을 프로필 이미지로 설정하고 친구들의 목록에도 반영합니다.
    """
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = ProfileImageUpdateSchema().load(request.get_json(silent=True) or {})
        result = user_service.update_profile_image(user_id, data['file_path'])
        return jsonify(result), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        logging.warning(f"프로필 이미지 파일 없음 (uid: {user_id}): {e}")
        return jsonify({"error_code": "FILE_NOT_FOUND", "message": str(e)}), 404


@users_bp.route('/me/basic-info', methods=['GET'])
@jwt_required()
def get_my_basic_info():
    user_service = current_app.services['users']
    info = user_service.get_basic_info(get_jwt_identity())
    return jsonify(BasicInfoSchema().dump(info.to_dict())), 200


@users_bp.route('/me/basic-info', methods=['PUT'])
@jwt_required()
def save_my_basic_info():
    """확장 프로필 저장. username이 바뀌면 친구들의 목록에도 전파됩니다."""
    user_service = current_app.services['users']
    data = BasicInfoSchema().load(request.get_json(silent=True) or {})
    info = user_service.save_basic_info(get_jwt_identity(), data)
    return jsonify(BasicInfoSchema().dump(info.to_dict())), 200


@users_bp.route('/me/resync', methods=['POST'])
@jwt_required()
def resync_my_profile_copies():
    user_service = current_app.services['users']
    result = user_service.resync_profile_copies(get_jwt_identity())
    return jsonify(result), 200


@users_bp.route('/me/fcm-token', methods=['POST'])
@jwt_required()
def register_fcm_token():
    """
    클라이언트의 FCM 토큰을 등록/업데이트합니다.
    """
    user_service = current_app.services['users']
    data = FCMTokenSchema().load(request.get_json(silent=True) or {})
    user_service.update_fcm_token(get_jwt_identity(), data['fcm_token'])
    return jsonify({"message": "FCM 토큰이 성공적으로 업데이트되었습니다."}), 200


@users_bp.route('/me/fcm-token', methods=['DELETE'])
@jwt_required()
def clear_fcm_token():
    user_service = current_app.services['users']
    user_service.clear_fcm_token(get_jwt_identity())
    return Response(status=204)


@users_bp.route('/me', methods=['DELETE'])
@jwt_required()
def delete_my_account():
    """
    현재 로그인된 사용자 본인의 계정과 관련 데이터를 영구적으로 삭제합니다.
    """
    user_service = current_app.services['users']
    user_service.delete_account(get_jwt_identity())
    return Response(status=204)
