# app/conftest.py
"""
테스트 공용 픽스처.

실제 Firestore 대신 서비스들이 사용하는 클라이언트 API 일부를 메모리에서 흉내 내는
FakeFirestore를 주입합니다. fail_paths에 경로를 넣으면 해당 경로를 건드리는 쓰기/배치 커밋이
ServiceUnavailable로 실패하며, 실패한 배치는 아무 것도 반영하지 않습니다.
"""
import copy
import uuid

import pytest
import firebase_admin.firestore
from firebase_admin import auth as firebase_auth
from flask_jwt_extended import create_access_token
from google.api_core.exceptions import NotFound, ServiceUnavailable
from google.cloud.firestore_v1.transforms import ArrayRemove, ArrayUnion, Increment

from app import create_app
from app.core import collections as paths
from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils


# --- Firestore 대역 ---------------------------------------------------------------

def _resolve(existing, value):
    if isinstance(value, Increment):
        return (existing or 0) + value.value
    if isinstance(value, ArrayUnion):
        current = list(existing or [])
        return current + [v for v in value.values if v not in current]
    if isinstance(value, ArrayRemove):
        return [v for v in (existing or []) if v not in value.values]
    return copy.deepcopy(value)


def _matches(data, field_path, op, value):
    if field_path not in data:
        return False
    actual = data[field_path]
    if op == '==':
        return actual == value
    if op == '!=':
        return actual != value
    if op == '>':
        return actual > value
    if op == '>=':
        return actual >= value
    if op == '<':
        return actual < value
    if op == '<=':
        return actual <= value
    if op == 'in':
        return actual in value
    if op == 'array_contains':
        return value in (actual or [])
    raise ValueError(f"unsupported operator: {op}")


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field):
        return (self._data or {}).get(field)


class FakeWatch:
    def __init__(self, db, listener):
        self._db = db
        self._listener = listener

    def unsubscribe(self):
        if self._listener in self._db.listeners:
            self._db.listeners.remove(self._listener)


class FakeQuery:
    def __init__(self, db, collection_path, filters=(), orders=(), limit_count=None,
                 all_descendants=False, start_after_id=None):
        self._db = db
        self._collection_path = collection_path
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_count
        self._all_descendants = all_descendants
        self._start_after_id = start_after_id

    def _copy(self, **changes):
        params = dict(filters=self._filters, orders=self._orders, limit_count=self._limit,
                      all_descendants=self._all_descendants, start_after_id=self._start_after_id)
        params.update(changes)
        return FakeQuery(self._db, self._collection_path, **params)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + ((field_path, op_string, value),))

    def order_by(self, field_path, direction="ASCENDING"):
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count):
        return self._copy(limit_count=count)

    def start_after(self, snapshot):
        return self._copy(start_after_id=snapshot.reference.path)

    def _in_scope(self, parent):
        if self._all_descendants:
            return parent.rsplit('/', 1)[-1] == self._collection_path
        return parent == self._collection_path

    def _results(self):
        docs = []
        for path, data in self._db.docs.items():
            if not self._in_scope(path.rpartition('/')[0]):
                continue
            if all(_matches(data, f, op, v) for f, op, v in self._filters):
                docs.append((path, data))
        for field_path, direction in reversed(self._orders):
            docs = [d for d in docs if field_path in d[1]]
            docs.sort(key=lambda d: d[1][field_path], reverse=(direction == "DESCENDING"))
        if self._start_after_id is not None:
            paths_in_order = [path for path, _ in docs]
            if self._start_after_id in paths_in_order:
                docs = docs[paths_in_order.index(self._start_after_id) + 1:]
        if self._limit is not None:
            docs = docs[:self._limit]
        return [
            FakeSnapshot(FakeDocumentReference(self._db, path), copy.deepcopy(data))
            for path, data in docs
        ]

    def stream(self, transaction=None):
        return iter(self._results())

    def get(self, transaction=None):
        return self._results()

    def on_snapshot(self, callback):
        listener = (self, callback)
        self._db.listeners.append(listener)
        callback(self._results(), [], DateTimeUtils.now())
        return FakeWatch(self._db, listener)


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)
        self.path = path
        self.id = path.rsplit('/', 1)[-1]

    def document(self, document_id=None):
        return FakeDocumentReference(self._db, f"{self.path}/{document_id or uuid.uuid4().hex[:20]}")


class FakeDocumentReference:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path.rsplit('/', 1)[-1]

    def collection(self, name):
        return FakeCollectionReference(self._db, f"{self.path}/{name}")

    def get(self, transaction=None):
        return FakeSnapshot(self, copy.deepcopy(self._db.docs.get(self.path)))

    def set(self, data, merge=False):
        self._db.commit_ops([('set', self, data, merge)])

    def update(self, data):
        self._db.commit_ops([('update', self, data, False)])

    def delete(self):
        self._db.commit_ops([('delete', self, None, False)])


class FakeWriteBatch:
    def __init__(self, db):
        self._db = db
        self._ops = []

    def set(self, reference, data, merge=False):
        self._ops.append(('set', reference, data, merge))

    def update(self, reference, data):
        self._ops.append(('update', reference, data, False))

    def delete(self, reference):
        self._ops.append(('delete', reference, None, False))

    def commit(self):
        self._db.commits += 1
        self._db.commit_ops(self._ops)


class FakeTransaction(FakeWriteBatch):
    """firestore.transactional을 항등 함수로 바꿔 쓰므로 쓰기를 즉시 반영합니다."""
    def set(self, reference, data, merge=False):
        self._db.commit_ops([('set', reference, data, merge)])

    def update(self, reference, data):
        self._db.commit_ops([('update', reference, data, False)])

    def delete(self, reference):
        self._db.commit_ops([('delete', reference, None, False)])


class FakeFirestore:
    def __init__(self):
        self.docs = {}
        self.listeners = []
        self.fail_paths = set()
        self.commits = 0

    def collection(self, name):
        return FakeCollectionReference(self, name)

    def document(self, path):
        return FakeDocumentReference(self, path)

    def collection_group(self, collection_id):
        return FakeQuery(self, collection_id, all_descendants=True)

    def batch(self):
        return FakeWriteBatch(self)

    def transaction(self):
        return FakeTransaction(self)

    def _should_fail(self, path):
        return any(path == p or path.startswith(p + '/') for p in self.fail_paths)

    def commit_ops(self, ops):
        # 검증을 모두 통과한 경우에만 반영 (all-or-nothing)
        for op, ref, _data, _merge in ops:
            if self._should_fail(ref.path):
                raise ServiceUnavailable(f"injected failure: {ref.path}")
            if op == 'update' and ref.path not in self.docs:
                raise NotFound(f"No document to update: {ref.path}")

        for op, ref, data, merge in ops:
            if op == 'delete':
                self.docs.pop(ref.path, None)
                continue
            base = dict(self.docs.get(ref.path, {})) if (op == 'update' or merge) else {}
            for key, value in data.items():
                base[key] = _resolve(base.get(key), value)
            self.docs[ref.path] = base

        touched = {ref.path.rpartition('/')[0] for _op, ref, _d, _m in ops}
        for query, callback in list(self.listeners):
            if query._collection_path in touched:
                callback(query._results(), [], DateTimeUtils.now())


# --- Storage 대역 -----------------------------------------------------------------

class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.public_url = f"https://storage.googleapis.com/{bucket.name}/{name}"

    def exists(self):
        return self.name in self.bucket.uploaded

    def make_public(self):
        self.bucket.public.add(self.name)

    def generate_signed_url(self, **kwargs):
        return f"https://signed.example/{self.name}?method={kwargs.get('method')}"


class FakeBucket:
    def __init__(self, name="aurora-test.appspot.com"):
        self.name = name
        self.uploaded = set()
        self.public = set()

    def blob(self, name):
        return FakeBlob(self, name)


# --- 픽스처 -----------------------------------------------------------------------

@pytest.fixture(autouse=True)
def plain_transactions(monkeypatch):
    monkeypatch.setattr(firebase_admin.firestore, "transactional", lambda fn: fn)


@pytest.fixture(autouse=True)
def fake_firebase_auth(monkeypatch):
    deleted = []

    def verify_id_token(id_token, *args, **kwargs):
        if not id_token.startswith("valid:"):
            raise firebase_auth.InvalidIdTokenError("invalid id token")
        uid = id_token.split(":", 1)[1]
        return {"uid": uid, "email": f"{uid}@aurora.test", "name": uid}

    monkeypatch.setattr(firebase_auth, "verify_id_token", verify_id_token)
    monkeypatch.setattr(firebase_auth, "delete_user", deleted.append)
    return deleted


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def app(db, bucket):
    return create_app('testing', db=db, bucket=bucket)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def _headers(uid):
        with app.app_context():
            token = create_access_token(identity=uid)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_user(db):
    def _make_user(uid, username=None, **fields):
        user = User(uid=uid, email=f"{uid}@aurora.test", username=username or uid, **fields)
        db.collection(paths.USERS).document(uid).set(DateTimeUtils.for_firestore(user.to_dict()))
        return user
    return _make_user


@pytest.fixture
def services(app):
    return app.services
