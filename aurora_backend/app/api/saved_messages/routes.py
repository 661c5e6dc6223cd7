# app/api/saved_messages/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.saved_messages.schemas import SavedMessageCreateSchema, SavedMessageResponseSchema
from app.utils.datetime_utils import DateTimeUtils

saved_messages_bp = Blueprint('saved_messages_bp', __name__)

def _dump(messages):
    return SavedMessageResponseSchema(many=True).dump(
        [{"messageId": m.message_id, **m.to_dict()} for m in messages]
    )


@saved_messages_bp.route('/<string:to_id>', methods=['POST'])
@jwt_required()
def save_message(to_id: str):
    saved_message_service = current_app.services['saved_messages']
    data = SavedMessageCreateSchema().load(request.get_json(silent=True) or {})
    message = saved_message_service.save_message(
        get_jwt_identity(), to_id, data['sender'], data['text'],
        timestamp=data['timestamp'], notify_partner=not data['for_self'],
    )
    return jsonify(_dump([message])[0]), 201


@saved_messages_bp.route('/<string:to_id>', methods=['GET'])
@jwt_required()
def list_saved_messages(to_id: str):
    """
    저장한 메시지 목록.
    - ?date=YYYY-MM-DD : 해당 날짜(UTC)의 메시지만
    - ?grouped=1 : 캘린더용 날짜별 그룹
    """
    saved_message_service = current_app.services['saved_messages']
    user_id = get_jwt_identity()

    day = request.args.get('date')
    if day:
        try:
            target = DateTimeUtils.parse_date_string(day)
        except ValueError as e:
            logging.warning(f"잘못된 날짜 파라미터: {day}")
            return jsonify({"error_code": "INVALID_DATE", "message": str(e)}), 400
        return jsonify(_dump(saved_message_service.list_saved_messages_on(user_id, to_id, target))), 200

    if request.args.get('grouped') in ('1', 'true'):
        grouped = saved_message_service.saved_messages_by_date(user_id, to_id)
        return jsonify({d: _dump(msgs) for d, msgs in grouped.items()}), 200

    return jsonify(_dump(saved_message_service.list_saved_messages(user_id, to_id))), 200


@saved_messages_bp.route('/<string:to_id>/<string:message_id>', methods=['DELETE'])
@jwt_required()
def delete_saved_message(to_id: str, message_id: str):
    saved_message_service = current_app.services['saved_messages']
    saved_message_service.delete_saved_message(get_jwt_identity(), to_id, message_id)
    return Response(status=204)


@saved_messages_bp.route('/<string:partner_id>/trigger', methods=['GET'])
@jwt_required()
def get_saving_trigger(partner_id: str):
    """상대방이 나와의 대화에서 메시지를 저장했는지 확인합니다."""
    saved_message_service = current_app.services['saved_messages']
    return jsonify({"triggering": saved_message_service.get_saving_trigger(get_jwt_identity(), partner_id)}), 200


@saved_messages_bp.route('/<string:partner_id>/trigger', methods=['DELETE'])
@jwt_required()
def reset_saving_trigger(partner_id: str):
    saved_message_service = current_app.services['saved_messages']
    saved_message_service.reset_saving_trigger(get_jwt_identity(), partner_id)
    return Response(status=204)
