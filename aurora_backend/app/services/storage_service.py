# app/services/storage_service.py
import uuid
import logging
from datetime import timedelta
from flask import Flask
from firebase_admin import storage

# 업로드 목적별 저장 폴더
UPLOAD_FOLDERS = {
    "user_profile": "profile_images/{user_id}",
}

class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    클라이언트가 서버를 거치지 않고 직접 업로드할 수 있도록 Pre-signed URL을 발급하고,
    업로드가 끝난 파일을 공개 URL로 전환합니다.
    """

    def __init__(self, bucket=None):
        """
        :param bucket: 테스트 등에서 직접 주입할 버킷 객체. 없으면 init_app에서 설정됩니다.
        """
        self.bucket = bucket

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.
        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 초기화되었습니다.")

    def _require_bucket(self):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        """
        업로드 목적에 맞는 경로로 15분간 유효한 PUT 전용 URL을 생성합니다.

        :param upload_type: 업로드 목적 (현재는 "user_profile"만 지원)
        :param filename: 원본 파일명 (확장자 파악에 사용)
        :param content_type: 업로드할 파일의 MIME 타입 (예: "image/jpeg")
        :return: {"upload_url", "file_path"}
        """
        self._require_bucket()

        folder_template = UPLOAD_FOLDERS.get(upload_type)
        if not folder_template:
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")

        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'jpg'
        destination_blob_name = f"{folder_template.format(user_id=user_id)}/{uuid.uuid4()}.{extension}"

        blob = self.bucket.blob(destination_blob_name)
        upload_url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=15),
            method="PUT",
            content_type=content_type
        )
        return {
            "upload_url": upload_url,
            "file_path": destination_blob_name
        }

    def make_public_and_get_url(self, file_path: str) -> str:
        """
        지정된 파일을 공개(public)로 설정하고 해당 URL을 반환합니다.
        :raises FileNotFoundError: 파일이 아직 업로드되지 않은 경우
        """
        self._require_bucket()

        blob = self.bucket.blob(file_path)
        if not blob.exists():
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {file_path}")

        try:
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logging.error(f"파일 공개 전환 실패 ({file_path}): {e}", exc_info=True)
            raise
