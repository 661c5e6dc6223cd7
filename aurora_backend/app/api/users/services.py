# app/api/users/services.py
import logging
from typing import Optional, Dict, Any, List

from firebase_admin import auth as firebase_auth
from google.cloud.firestore_v1.base_query import FieldFilter

from app.api.friend_requests.services import FriendRequestService
from app.api.friends.services import FriendService
from app.core import collections as paths
from app.core.errors import UserNotFoundError
from app.models.basic_info import BasicInfo
from app.models.user import User, PUBLIC_PROFILE_FIELDS
from app.services.firestore_service import commit_in_chunks
from app.services.storage_service import StorageService

class UserService:
    """
    사용자 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - users/{uid} 문서가 공개 프로필의 원본(canonical)입니다.
    - 친구들의 friend_list에 있는 사본은 fan_out_profile_fields로 갱신합니다.
    - StorageService와 같은 공용 서비스는 의존성 주입을 통해 받습니다.
    """
    def __init__(self, db, storage_service: StorageService, friend_service: FriendService,
                 friend_request_service: FriendRequestService, fanout_batch_size: int = 400):
        self.db = db
        self.users_ref = self.db.collection(paths.USERS)
        self.storage_service = storage_service
        self.friend_service = friend_service
        self.friend_request_service = friend_request_service
        self.fanout_batch_size = fanout_batch_size

    def get_user(self, uid: str) -> User:
        doc = self.users_ref.document(uid).get()
        if not doc.exists:
            raise UserNotFoundError(uid)
        return User.from_dict(doc.to_dict(), uid=doc.id)

    def get_public_profile(self, uid: str, viewer_uid: Optional[str] = None) -> Dict[str, Any]:
        """
        다른 사용자의 공개 프로필을 조회합니다.
        로그인한 사용자가 조회하는 경우 친구 관계 상태('friends' | 'pending' | 'none')를 함께 반환합니다.
        """
        user = self.get_user(uid)
        profile = user.public_snapshot()
        profile['basicInfo'] = self.get_basic_info(uid).to_dict()
        if viewer_uid and viewer_uid != uid:
            profile['friendshipStatus'] = self.friend_request_service.get_request_status(viewer_uid, uid)
        return profile

    def update_username(self, uid: str, username: str) -> Dict[str, Any]:
        """원본 문서의 username을 바꾸고 모든 친구의 사본에 전파합니다."""
        user_ref = self.users_ref.document(uid)
        if not user_ref.get().exists:
            raise UserNotFoundError(uid)
        user_ref.update({'username': username})
        logging.info(f"username 변경 완료 (uid: {uid})")
        return self.fan_out_profile_fields(uid, {'username': username})

    def update_profile_image(self, uid: str, file_path: str) -> Dict[str, Any]:
        """
        업로드가 끝난 Storage 파일을 공개 URL로 전환하여 프로필 이미지로 설정합니다.
        :param file_path: /api/uploads/profile-image-url 에서 발급받은 파일 경로
        """
        user_ref = self.users_ref.document(uid)
        if not user_ref.get().exists:
            raise UserNotFoundError(uid)

        try:
            public_url = self.storage_service.make_public_and_get_url(file_path)
            user_ref.update({'profileImageUrl': public_url})
        except Exception as e:
            logging.error(f"프로필 이미지 업데이트 실패 (uid: {uid}): {e}", exc_info=True)
            raise

        result = self.fan_out_profile_fields(uid, {'profileImageUrl': public_url})
        result['profileImageUrl'] = public_url
        return result

    def fan_out_profile_fields(self, uid: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        friends/{friend}/friend_list/{uid} 사본들에 변경된 공개 필드를 기록합니다.

        - 이미 사라진 사본(친구 삭제 후)은 건너뜁니다. 삭제된 관계를 되살리지 않습니다.
        - fanout_batch_size 단위로 커밋하며, 한 배치가 실패해도 나머지는 계속 진행합니다.
        - 같은 값으로 다시 실행해도 결과가 같으므로 실패분은 재실행으로 복구됩니다.

        :return: {'updated': [...], 'failed': [...]} 친구 uid 목록
        """
        writes = []
        for friend_uid in self.friend_service.list_friend_uids(uid):
            mirror_ref = paths.friend_edge(self.db, friend_uid, uid)
            if not mirror_ref.get().exists:
                logging.warning(f"프로필 사본 없음, 건너뜀 (owner: {friend_uid}, uid: {uid})")
                continue
            writes.append((friend_uid, 'update', mirror_ref, dict(fields)))

        updated, failed = commit_in_chunks(self.db, writes, self.fanout_batch_size)
        if failed:
            logging.error(f"프로필 전파 일부 실패 (uid: {uid}, 실패: {len(failed)}/{len(writes)})")
        else:
            logging.info(f"프로필 전파 완료 (uid: {uid}, 대상: {len(updated)}명, 필드: {list(fields)})")
        return {'updated': updated, 'failed': failed}

    def resync_profile_copies(self, uid: str) -> Dict[str, Any]:
        """원본 문서의 공개 필드를 다시 전파하여 오래된 사본을 복구합니다."""
        snapshot = self.get_user(uid).public_snapshot()
        fields = {key: snapshot[key] for key in PUBLIC_PROFILE_FIELDS if key != 'uid'}
        return self.fan_out_profile_fields(uid, fields)

    def get_basic_info(self, uid: str) -> BasicInfo:
        doc = paths.basic_info(self.db, uid).get()
        if not doc.exists:
            return BasicInfo()
        return BasicInfo.from_dict(doc.to_dict())

    def save_basic_info(self, uid: str, data: Dict[str, Any]) -> BasicInfo:
        """
        확장 프로필을 저장합니다.
        username이 바뀐 경우에만 원본 users 문서와 친구 사본에도 반영합니다.
        """
        user = self.get_user(uid)
        merged = self.get_basic_info(uid).to_dict()
        merged.update({k: v for k, v in data.items() if v is not None})
        info = BasicInfo.from_dict(merged)

        paths.basic_info(self.db, uid).set(info.to_dict(), merge=True)
        logging.info(f"기본 정보 저장 완료 (uid: {uid})")

        if info.username and info.username != user.username:
            self.update_username(uid, info.username)
        return info

    def search_users(self, uid: str, query: str, limit: int = 20) -> List[Dict[str, Any]]:
        """
        username이 query로 시작하는 사용자를 찾습니다. 본인과 이미 친구인 사용자는 제외합니다.
        """
        if not query or limit <= 0:
            return []
        base_query = (
            self.users_ref
            .where(filter=FieldFilter('username', '>=', query))
            .where(filter=FieldFilter('username', '<=', query + '\uf8ff'))
            .order_by('username')
            .limit(limit)
        )
        excluded = set(self.friend_service.list_friend_uids(uid))
        excluded.add(uid)

        # \uc81c\uc678 \ub300\uc0c1\uc774 \ub9ce\uc544\ub3c4 limit\uac1c\ub97c \ucc44\uc6b8 \ub54c\uae4c\uc9c0 \ud398\uc774\uc9c0\ub97c \ub118\uae41\ub2c8\ub2e4.
        results = []
        last_doc = None
        while len(results) < limit:
            page_query = base_query.start_after(last_doc) if last_doc is not None else base_query
            page = list(page_query.stream())
            for doc in page:
                if doc.id in excluded:
                    continue
                results.append(User.from_dict(doc.to_dict(), uid=doc.id).public_snapshot())
                if len(results) >= limit:
                    break
            if len(page) < limit:
                break
            last_doc = page[-1]
        return results

    def update_fcm_token(self, uid: str, fcm_token: str) -> None:
        """
        사용자의 FCM 토큰을 Firestore에 저장하거나 업데이트합니다.
        :param fcm_token: 클라이언트로부터 받은 새로운 FCM 토큰
        """
        try:
            self.users_ref.document(uid).update({"fcmToken": fcm_token})
            logging.info(f"FCM 토큰 업데이트 완료 (uid: {uid})")
        except Exception as e:
            logging.error(f"FCM 토큰 업데이트 실패 (uid: {uid}): {e}", exc_info=True)
            raise

    def clear_fcm_token(self, uid: str) -> None:
        user_ref = self.users_ref.document(uid)
        if user_ref.get().exists:
            user_ref.update({"fcmToken": ""})

    def delete_account(self, uid: str) -> None:
        """
        회원 탈퇴. Firestore 데이터를 직접 정리한 뒤 Firebase Auth 사용자를 삭제합니다.
        정리 대상: 양방향 친구 사본, 받은/보낸 친구 요청, 기본 정보, 읽음 커서, users 문서
        """
        writes = []
        for friend_uid in self.friend_service.list_friend_uids(uid):
            writes.append((friend_uid, 'delete', paths.friend_edge(self.db, friend_uid, uid), None))
            writes.append((friend_uid, 'delete', paths.friend_edge(self.db, uid, friend_uid), None))
        for doc in paths.request_list(self.db, uid).stream():
            writes.append((doc.id, 'delete', doc.reference, None))
        for doc in paths.sent_requests(self.db, uid).stream():
            writes.append((doc.reference.path, 'delete', doc.reference, None))
        writes.append((uid, 'delete', paths.basic_info(self.db, uid), None))
        writes.append((uid, 'delete', self.db.collection(paths.READ_CURSORS).document(uid), None))
        writes.append((uid, 'delete', self.users_ref.document(uid), None))

        _, failed = commit_in_chunks(self.db, writes, self.fanout_batch_size)
        if failed:
            logging.error(f"회원 탈퇴 데이터 정리 일부 실패 (uid: {uid}, 실패 키: {failed})")
            raise RuntimeError(f"회원 데이터 정리에 실패했습니다. (uid: {uid})")

        try:
            firebase_auth.delete_user(uid)
            logging.info(f"Firebase Auth 사용자 삭제 성공 (uid: {uid}).")
        except firebase_auth.UserNotFoundError:
            logging.warning(f"Firebase Auth에서 이미 삭제된 사용자입니다 (uid: {uid}).")
        except Exception as e:
            logging.error(f"회원 탈퇴 처리 중 Firebase Auth 사용자 삭제 실패 (uid: {uid}): {e}", exc_info=True)
            raise
