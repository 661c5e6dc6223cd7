# app/api/auth/services.py
import logging
from datetime import datetime
from typing import Tuple, Optional
from firebase_admin import auth as firebase_auth

from app.core import collections as paths
from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils

class AuthService:
    """
    Firebase Auth ID 토큰을 서버 JWT 세션으로 교환하고, 로그아웃 토큰 Blocklist를 관리합니다.
    """
    def __init__(self, db):
        self.db = db
        self.users_ref = self.db.collection(paths.USERS)
        self.revoked_tokens_ref = self.db.collection(paths.REVOKED_TOKENS)

    def verify_id_token(self, id_token: str) -> dict:
        """클라이언트가 Firebase Auth로 로그인해 받은 ID 토큰을 검증합니다."""
        return firebase_auth.verify_id_token(id_token)

    def get_or_create_user(self, claims: dict) -> Tuple[User, bool]:
        """
        검증된 토큰 정보로 users/{uid} 문서를 찾고, 없으면 새로 만듭니다. (회원가입)
        :return: (User, 신규 가입 여부)
        """
        uid = claims.get('uid') or claims.get('sub')
        if not uid:
            raise ValueError("Firebase ID 토큰에 uid가 없습니다.")

        user_ref = self.users_ref.document(uid)
        doc = user_ref.get()
        if doc.exists:
            return User.from_dict(doc.to_dict(), uid=uid), False

        email = claims.get('email') or ""
        new_user = User(
            uid=uid,
            email=email,
            username=claims.get('name') or email.split('@')[0],
            profile_image_url=claims.get('picture') or "",
        )
        user_ref.set(DateTimeUtils.for_firestore(new_user.to_dict()))
        logging.info(f"신규 사용자 가입 완료 (uid: {uid})")
        return new_user, True

    def create_session(self, id_token: str) -> Tuple[User, bool]:
        claims = self.verify_id_token(id_token)
        return self.get_or_create_user(claims)

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 Firestore에 저장합니다."""
        try:
            token_data = {
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            }
            self.revoked_tokens_ref.document(jti).set(DateTimeUtils.for_firestore(token_data))
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}", exc_info=True)
            raise

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        return self.revoked_tokens_ref.document(jwt_payload['jti']).get().exists

    def logout_user(self, uid: Optional[str], access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """
        Access/Refresh 토큰을 모두 Blocklist에 추가하고, 더 이상 푸시를 받지 않도록 FCM 토큰을 지웁니다.
        """
        self.add_token_to_blocklist(access_jti, DateTimeUtils.from_timestamp_seconds(access_exp))
        self.add_token_to_blocklist(refresh_jti, DateTimeUtils.from_timestamp_seconds(refresh_exp))

        if uid:
            user_ref = self.users_ref.document(uid)
            if user_ref.get().exists:
                user_ref.update({'fcmToken': ""})
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")
