# app/services/firestore_service.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.utils.datetime_utils import DateTimeUtils

# (키, 연산, 문서 참조, 데이터) 형태의 쓰기 작업. 연산은 'set' | 'update' | 'delete'
Write = Tuple[str, str, Any, Optional[Dict[str, Any]]]


def add_document(collection_ref, data: Dict[str, Any]) -> str:
    """
    자동 생성 ID로 컬렉션에 문서를 추가하고 문서 ID를 반환합니다.

    :param collection_ref: 문서를 저장할 컬렉션 참조
    :param data: 저장할 데이터 딕셔너리
    :return: 생성된 Firestore 문서의 고유 ID
    """
    try:
        doc_ref = collection_ref.document()
        doc_ref.set(DateTimeUtils.for_firestore(data))
        logging.info(f"Firestore 저장 성공 (Collection: {collection_ref.id}, Doc ID: {doc_ref.id})")
        return doc_ref.id
    except Exception as e:
        logging.error(f"Firestore 저장 실패 (Collection: {collection_ref.id}): {e}", exc_info=True)
        raise


def _apply(batch, op: str, doc_ref, data: Optional[Dict[str, Any]]):
    if op == 'set':
        batch.set(doc_ref, DateTimeUtils.for_firestore(data))
    elif op == 'update':
        batch.update(doc_ref, DateTimeUtils.for_firestore(data))
    elif op == 'delete':
        batch.delete(doc_ref)
    else:
        raise ValueError(f"지원하지 않는 쓰기 연산입니다: {op}")


def commit_atomic(db, writes: Iterable[Write]) -> None:
    """
    여러 문서 쓰기를 하나의 WriteBatch로 원자적으로 커밋합니다.
    하나라도 실패하면 아무 것도 반영되지 않습니다. (최대 500건)
    """
    batch = db.batch()
    for _key, op, doc_ref, data in writes:
        _apply(batch, op, doc_ref, data)
    batch.commit()


def commit_in_chunks(db, writes: List[Write], chunk_size: int) -> Tuple[List[str], List[str]]:
    """
    많은 수의 쓰기를 chunk_size 단위 배치로 나누어 커밋합니다.
    한 배치가 실패해도 나머지 배치는 계속 진행하며, 성공/실패한 키 목록을 반환합니다.
    """
    succeeded: List[str] = []
    failed: List[str] = []
    for start in range(0, len(writes), chunk_size):
        chunk = writes[start:start + chunk_size]
        keys = [w[0] for w in chunk]
        try:
            commit_atomic(db, chunk)
            succeeded.extend(keys)
        except Exception as e:
            logging.error(f"배치 커밋 실패 ({len(chunk)}건, keys: {keys}): {e}", exc_info=True)
            failed.extend(keys)
    return succeeded, failed
