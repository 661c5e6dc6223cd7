# app/api/activity/routes.py
import json
import logging
import queue
from flask import Blueprint, Response, jsonify, current_app, stream_with_context
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.services.notification_service import ActivityWatcher
from app.utils.datetime_utils import DateTimeUtils

activity_bp = Blueprint('activity_bp', __name__)

@activity_bp.route('', methods=['GET'])
@jwt_required()
def get_activity():
    """피드 탭 배지 상태: hasNewPost / hasNewLike / hasUnseenActivity"""
    activity_service = current_app.services['activity']
    return jsonify(activity_service.evaluate(get_jwt_identity())), 200


@activity_bp.route('/seen', methods=['POST'])
@jwt_required()
def mark_activity_seen():
    activity_service = current_app.services['activity']
    cursor = activity_service.mark_seen(get_jwt_identity())
    return jsonify({
        "lastCheckedTimestamp": DateTimeUtils.to_iso_string(cursor.last_checked_timestamp),
        "lastLikesCount": cursor.last_likes_count,
    }), 200


@activity_bp.route('/stream', methods=['GET'])
@jwt_required()
def stream_activity():
    """
    배지 값이 바뀔 때마다 'activity' 이벤트를 보내는 Server-Sent Events 스트림.
    연결 유지를 위해 일정 간격으로 주석(heartbeat) 라인을 보냅니다.
    """
    activity_service = current_app.services['activity']
    heartbeat = current_app.config.get('ACTIVITY_STREAM_HEARTBEAT_SECONDS', 25)
    user_id = get_jwt_identity()
    events: "queue.Queue[dict]" = queue.Queue()

    def event_gen():
        watcher = ActivityWatcher(activity_service, user_id, events.put).start()
        try:
            while True:
                try:
                    state = events.get(timeout=heartbeat)
                except queue.Empty:
                    yield ": heartbeat\n\n"
                    continue
                yield f"event: activity\ndata: {json.dumps(state)}\n\n"
        finally:
            watcher.stop()
            logging.info(f"활동 스트림 연결 종료 (uid: {user_id})")

    headers = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
    return Response(stream_with_context(event_gen()), mimetype="text/event-stream", headers=headers)
