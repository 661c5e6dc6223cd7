# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정 / 공통 예외
from app.core.config import config_by_name
from app.core.errors import AppError

# - API 블루프린트
from app.api.auth.routes import auth_bp
from app.api.uploads.routes import uploads_bp
from app.api.users.routes import users_bp
from app.api.friends.routes import friends_bp
from app.api.friend_requests.routes import friend_requests_bp
from app.api.prompts.routes import prompts_bp
from app.api.activity.routes import activity_bp
from app.api.saved_messages.routes import saved_messages_bp
from app.api.reports.routes import reports_bp

# - 서비스 모듈
from app.services.storage_service import StorageService
from app.services.notification_service import ActivityService
from app.api.auth.services import AuthService
from app.api.users.services import UserService
from app.api.friends.services import FriendService
from app.api.friend_requests.services import FriendRequestService
from app.api.prompts.services import PromptService
from app.api.saved_messages.services import SavedMessageService
from app.api.reports.services import ReportService

def create_app(config_name=None, db=None, bucket=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production' (없으면 FLASK_ENV)
    :param db: 주입할 Firestore 클라이언트. 없으면 firebase_admin을 초기화하여 사용합니다.
    :param bucket: 주입할 Storage 버킷. 없으면 설정의 FIREBASE_STORAGE_BUCKET을 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt_manager = JWTManager(app)

    if db is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred, {
                'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
            })
        db = firestore.client()

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용 서비스 먼저 생성
    storage_instance = StorageService(bucket=bucket)
    if bucket is None:
        try:
            storage_instance.init_app(app)
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}", exc_info=True)
            raise
    app.services['storage'] = storage_instance
    app.services['auth'] = AuthService(db)
    app.services['friends'] = FriendService(db)

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['friend_requests'] = FriendRequestService(db, friend_service=app.services['friends'])
    app.services['users'] = UserService(
        db,
        storage_service=app.services['storage'],
        friend_service=app.services['friends'],
        friend_request_service=app.services['friend_requests'],
        fanout_batch_size=app.config['FANOUT_BATCH_SIZE'],
    )
    app.services['prompts'] = PromptService(
        db,
        friend_service=app.services['friends'],
        current_prompt_id=app.config['CURRENT_PROMPT_ID'],
    )
    app.services['activity'] = ActivityService(
        db,
        friend_service=app.services['friends'],
        prompt_service=app.services['prompts'],
    )
    app.services['saved_messages'] = SavedMessageService(db)
    app.services['reports'] = ReportService(db)

    # =====================================================================================
    # 6. JWT 콜백 (Blocklist / 인증 실패 응답)
    # =====================================================================================
    @jwt_manager.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    @jwt_manager.unauthorized_loader
    def handle_missing_token(reason):
        return jsonify({"error_code": "AUTHENTICATION_REQUIRED", "message": reason}), 401

    @jwt_manager.invalid_token_loader
    def handle_invalid_token(reason):
        return jsonify({"error_code": "INVALID_TOKEN", "message": reason}), 401

    @jwt_manager.expired_token_loader
    def handle_expired_token(jwt_header, jwt_payload):
        return jsonify({"error_code": "TOKEN_EXPIRED", "message": "토큰이 만료되었습니다."}), 401

    @jwt_manager.revoked_token_loader
    def handle_revoked_token(jwt_header, jwt_payload):
        return jsonify({"error_code": "TOKEN_REVOKED", "message": "로그아웃된 토큰입니다."}), 401

    # =====================================================================================
    # 7. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(friends_bp, url_prefix='/api/friends')
    app.register_blueprint(friend_requests_bp, url_prefix='/api/friend-requests')
    app.register_blueprint(prompts_bp, url_prefix='/api/prompts')
    app.register_blueprint(activity_bp, url_prefix='/api/activity')
    app.register_blueprint(saved_messages_bp, url_prefix='/api/saved-messages')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')

    # =====================================================================================
    # 8. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(AppError)
    def handle_app_error(err):
        logging.warning(f"{err.error_code}: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {"error_code": err.name.upper().replace(' ', '_'), "message": err.description}
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 9. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
