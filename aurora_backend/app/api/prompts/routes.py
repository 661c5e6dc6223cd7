# app/api/prompts/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.prompts.schemas import PromptSchema, ResponseCreateSchema, PromptResponseSchema

prompts_bp = Blueprint('prompts_bp', __name__)

@prompts_bp.route('/current', methods=['GET'])
@jwt_required()
def get_current_prompt():
    prompt_service = current_app.services['prompts']
    prompt = prompt_service.get_current_prompt()
    return jsonify(PromptSchema().dump({"text": prompt.text, "updatedAt": prompt.updated_at})), 200


@prompts_bp.route('/responses', methods=['POST'])
@jwt_required()
def submit_response():
    """오늘의 질문에 답변합니다. 답변 후 친구 피드가 열립니다."""
    prompt_service = current_app.services['prompts']
    data = ResponseCreateSchema().load(request.get_json(silent=True) or {})
    response = prompt_service.submit_response(get_jwt_identity(), data['text'])
    payload = {"responseId": response.response_id, **response.to_dict()}
    return jsonify(PromptResponseSchema().dump(payload)), 201


@prompts_bp.route('/feed', methods=['GET'])
@jwt_required()
def get_feed():
    """
    본인과 친구들의 최신 답변 피드.
    아직 답변하지 않았다면 {"locked": true, "responses": []}
    """
    prompt_service = current_app.services['prompts']
    return jsonify(prompt_service.get_feed(get_jwt_identity())), 200


@prompts_bp.route('/responses/<string:response_id>/like', methods=['POST'])
@jwt_required()
def toggle_response_like(response_id: str):
    prompt_service = current_app.services['prompts']
    result = prompt_service.toggle_like(get_jwt_identity(), response_id)
    return jsonify(result), 200
