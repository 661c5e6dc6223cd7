# app/api/friends/routes.py
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.friends.schemas import FriendResponseSchema, FriendSettingsSchema

friends_bp = Blueprint('friends_bp', __name__)

@friends_bp.route('', methods=['GET'])
@jwt_required()
def list_friends():
    """내 친구 목록. 고정된 친구가 먼저, 그 안에서는 최근 메시지 순으로 정렬됩니다."""
    friend_service = current_app.services['friends']
    friends = friend_service.list_friends(get_jwt_identity())
    return jsonify(FriendResponseSchema(many=True).dump([f.to_dict() for f in friends])), 200


@friends_bp.route('/<string:friend_uid>', methods=['DELETE'])
@jwt_required()
def remove_friend(friend_uid: str):
    friend_service = current_app.services['friends']
    friend_service.remove_friend(get_jwt_identity(), friend_uid)
    return Response(status=204)


@friends_bp.route('/<string:friend_uid>/settings', methods=['PATCH'])
@jwt_required()
def update_friend_settings(friend_uid: str):
    """친구 고정/음소거 설정. 내 쪽 목록에만 적용됩니다."""
    friend_service = current_app.services['friends']
    settings = FriendSettingsSchema().load(request.get_json(silent=True) or {})
    edge = friend_service.update_settings(get_jwt_identity(), friend_uid, settings)
    return jsonify(FriendResponseSchema().dump(edge.to_dict())), 200


@friends_bp.route('/<string:friend_uid>/seen', methods=['POST'])
@jwt_required()
def mark_latest_message_seen(friend_uid: str):
    friend_service = current_app.services['friends']
    friend_service.mark_latest_message_seen(get_jwt_identity(), friend_uid)
    return Response(status=204)


@friends_bp.route('/reconcile', methods=['POST'])
@jwt_required()
def reconcile_friendships():
    """한쪽에만 남아 있는 친구 관계의 역방향 사본을 복구합니다."""
    friend_service = current_app.services['friends']
    repaired = friend_service.reconcile_friendships(get_jwt_identity())
    return jsonify({"repaired": repaired}), 200
