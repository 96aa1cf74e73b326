"""告警存储（PostgreSQL + pgvector）"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError

from .models import Alert, FileUpload
from ..parsers.alert_parser import AlertRecord
from ..parsers.extractors import parse_datetime
from ..utils.exceptions import StoreError

logger = logging.getLogger(__name__)


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class AlertStore:
    """告警数据访问层"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _row_from_record(self, record: AlertRecord) -> dict:
        row = record.to_dict()
        row["timestamp"] = parse_datetime(row["timestamp"])
        return row

    def insert_statement(self, records: List[AlertRecord]):
        return (
            pg_insert(Alert)
            .values([self._row_from_record(r) for r in records])
            .on_conflict_do_nothing(index_elements=["problem_id"])
            .returning(Alert.problem_id)
        )

    def insert_batch(self, records: List[AlertRecord]) -> List[str]:
        """批量插入，problem_id冲突的记录被跳过，返回实际插入的ID"""
        if not records:
            return []

        stmt = self.insert_statement(records)
        try:
            with self.session_factory() as db:
                inserted = [row[0] for row in db.execute(stmt)]
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert alerts: {e}")
            raise StoreError(str(e)) from e

        logger.info(f"Inserted {len(inserted)}/{len(records)} alerts")
        return inserted

    def exists(self, problem_id: str) -> bool:
        try:
            with self.session_factory() as db:
                return db.query(Alert.id).filter(Alert.problem_id == problem_id).first() is not None
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    @staticmethod
    def similarity_statement(embedding: List[float], threshold: float, limit: int):
        """相似度严格大于阈值的告警，按距离升序"""
        distance = Alert.embedding.cosine_distance(embedding)
        similarity = 1 - distance
        return (
            select(Alert, similarity.label("similarity"))
            .where(Alert.embedding.isnot(None))
            .where(similarity > threshold)
            .order_by(distance)
            .limit(limit)
        )

    def similarity_search(self, embedding: List[float], threshold: float = 0.7,
                          limit: int = 10) -> List[Dict]:
        """余弦相似度检索，按相似度降序返回"""
        stmt = self.similarity_statement(embedding, threshold, limit)
        try:
            with self.session_factory() as db:
                rows = db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Similarity search failed: {e}")
            raise StoreError(str(e)) from e

        results = []
        for alert, similarity in rows:
            item = alert.to_dict()
            item["similarity"] = float(similarity)
            results.append(item)
        return results

    def execute_readonly(self, query: str, limit: int = 100) -> List[Dict]:
        """执行生成的SELECT语句（调用方负责校验）"""
        try:
            with self.session_factory() as db:
                result = db.connection().exec_driver_sql(
                    query, execution_options={"no_parameters": True}
                )
                rows = result.mappings().fetchmany(limit)
                db.rollback()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        return [
            {key: _jsonable(value) for key, value in row.items() if key != "embedding"}
            for row in rows
        ]

    def fetch_alerts(self, limit: int = 100) -> List[Dict]:
        with self.session_factory() as db:
            return [a.to_dict() for a in db.query(Alert).limit(limit).all()]

    def count_alerts(self) -> int:
        with self.session_factory() as db:
            return db.query(func.count(Alert.id)).scalar()

    def alerts_by_host(self) -> List[Dict]:
        """按主机统计告警数量"""
        with self.session_factory() as db:
            rows = db.query(Alert.host, Alert.status).order_by(Alert.host).all()

        hosts = {}
        for host, status in rows:
            stats = hosts.setdefault(host, {"host": host, "total": 0, "active": 0, "resolved": 0})
            stats["total"] += 1
            if status == "PROBLEM":
                stats["active"] += 1
            else:
                stats["resolved"] += 1

        return sorted(hosts.values(), key=lambda s: s["total"], reverse=True)

    def recent_alerts(self, limit: int = 50) -> List[Dict]:
        with self.session_factory() as db:
            alerts = db.query(Alert).order_by(Alert.timestamp.desc()).limit(limit).all()
            return [a.to_dict() for a in alerts]

    def active_alerts(self) -> List[Dict]:
        with self.session_factory() as db:
            alerts = db.query(Alert).filter(Alert.status == "PROBLEM").order_by(Alert.timestamp.desc()).all()
            return [a.to_dict() for a in alerts]

    def alerts_since(self, days: int = 2) -> List[Dict]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        with self.session_factory() as db:
            alerts = db.query(Alert).filter(Alert.timestamp >= since).order_by(Alert.timestamp.desc()).all()
            return [a.to_dict() for a in alerts]

    def insert_upload(self, filename: str, records_count: int, records_added: int,
                      records_skipped: int, status: str,
                      date_range_start: Optional[str] = None,
                      date_range_end: Optional[str] = None) -> Dict:
        """记录一次文件导入"""
        upload = FileUpload(
            filename=filename,
            records_count=records_count,
            records_added=records_added,
            records_skipped=records_skipped,
            date_range_start=parse_datetime(date_range_start) if date_range_start else None,
            date_range_end=parse_datetime(date_range_end) if date_range_end else None,
            status=status
        )
        try:
            with self.session_factory() as db:
                db.add(upload)
                db.commit()
                db.refresh(upload)
                return upload.to_dict()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def upload_history(self, limit: int = 10) -> List[Dict]:
        with self.session_factory() as db:
            uploads = db.query(FileUpload).order_by(FileUpload.upload_date.desc()).limit(limit).all()
            return [u.to_dict() for u in uploads]

    def alerts_missing_embedding(self) -> List[Dict]:
        with self.session_factory() as db:
            alerts = db.query(Alert).filter(Alert.embedding.is_(None)).all()
            return [a.to_dict() for a in alerts]

    def set_embedding(self, alert_id: int, embedding: List[float]):
        try:
            with self.session_factory() as db:
                db.query(Alert).filter(Alert.id == alert_id).update({"embedding": embedding})
                db.commit()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
