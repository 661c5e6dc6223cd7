# app/api/friend_requests/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.api.friend_requests.schemas import FriendRequestCreateSchema, FriendRequestResponseSchema

friend_requests_bp = Blueprint('friend_requests_bp', __name__)

@friend_requests_bp.route('', methods=['POST'])
@jwt_required()
def send_friend_request():
    """
    친구 요청을 보냅니다.
    - 자기 자신: 400 / 상대방 없음: 404 / 이미 친구 또는 대기 중 요청 존재: 409
    """
    request_service = current_app.services['friend_requests']
    user_id = get_jwt_identity()
    try:
        data = FriendRequestCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    created = request_service.send_request(user_id, data['to_uid'])
    logging.info(f"친구 요청 API 처리 완료 ({user_id} -> {data['to_uid']})")
    return jsonify(FriendRequestResponseSchema().dump(created)), 201


@friend_requests_bp.route('', methods=['GET'])
@jwt_required()
def list_friend_requests():
    """나에게 온 대기 중 친구 요청 목록과 개수."""
    request_service = current_app.services['friend_requests']
    pending = request_service.list_pending_requests(get_jwt_identity())
    return jsonify({
        "requests": FriendRequestResponseSchema(many=True).dump(pending),
        "count": len(pending),
    }), 200


@friend_requests_bp.route('/status/<string:other_uid>', methods=['GET'])
@jwt_required()
def get_friend_request_status(other_uid: str):
    request_service = current_app.services['friend_requests']
    status = request_service.get_request_status(get_jwt_identity(), other_uid)
    return jsonify({"status": status}), 200


@friend_requests_bp.route('/<string:from_uid>/accept', methods=['POST'])
@jwt_required()
def accept_friend_request(from_uid: str):
    """요청 삭제와 양방향 친구 관계 생성이 함께 커밋됩니다."""
    request_service = current_app.services['friend_requests']
    request_service.accept_request(get_jwt_identity(), from_uid)
    return jsonify({"message": "친구 요청을 수락했습니다."}), 200


@friend_requests_bp.route('/<string:from_uid>/reject', methods=['POST'])
@jwt_required()
def reject_friend_request(from_uid: str):
    request_service = current_app.services['friend_requests']
    request_service.reject_request(get_jwt_identity(), from_uid)
    return Response(status=204)


@friend_requests_bp.route('/sent/<string:to_uid>', methods=['DELETE'])
@jwt_required()
def cancel_friend_request(to_uid: str):
    request_service = current_app.services['friend_requests']
    request_service.cancel_request(get_jwt_identity(), to_uid)
    return Response(status=204)
