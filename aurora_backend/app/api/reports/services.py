# app/api/reports/services.py
import logging

from app.models.report import Report, ReportScope
from app.services.firestore_service import add_document

class ReportService:
    """사용자 신고 접수. 검토/처리는 백오피스에서 담당합니다."""
    def __init__(self, db):
        self.db = db

    def _file(self, scope: ReportScope, reporter_uid: str, reportee_uid: str, content: str) -> str:
        report = Report(reporter_uid=reporter_uid, reportee_uid=reportee_uid, content=content)
        report_id = add_document(self.db.collection(scope.value), report.to_dict())
        logging.info(f"신고 접수 ({scope.value}, {reporter_uid} -> {reportee_uid}, id: {report_id})")
        return report_id

    def report_user(self, reporter_uid: str, reportee_uid: str, content: str) -> str:
        return self._file(ReportScope.USER, reporter_uid, reportee_uid, content)

    def report_self(self, reporter_uid: str, reportee_uid: str, content: str) -> str:
        return self._file(ReportScope.SELF, reporter_uid, reportee_uid, content)
