# app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰 위변조 방지에 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', 1)))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv('JWT_REFRESH_TOKEN_DAYS', 14)))

    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # 프로필 팬아웃 시 한 번에 커밋할 문서 수 (Firestore WriteBatch 최대 500)
    FANOUT_BATCH_SIZE = min(int(os.getenv('FANOUT_BATCH_SIZE', 400)), 500)

    # 오늘의 질문 문서 ID (prompts/{CURRENT_PROMPT_ID})
    CURRENT_PROMPT_ID = os.getenv('CURRENT_PROMPT_ID', 'currentPrompt')

    # SSE 스트림에서 변경이 없을 때 보내는 heartbeat 간격(초)
    ACTIVITY_STREAM_HEARTBEAT_SECONDS = int(os.getenv('ACTIVITY_STREAM_HEARTBEAT_SECONDS', 25))

class DevelopmentConfig(Config):
    """개발 환경 설정."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경 설정. Firestore 클라이언트는 create_app에 직접 주입합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'aurora-testing-secret-key-0123456789')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET', 'aurora-test.appspot.com')
    FANOUT_BATCH_SIZE = 2
    ACTIVITY_STREAM_HEARTBEAT_SECONDS = 1

class ProductionConfig(Config):
    """운영 환경 설정."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
