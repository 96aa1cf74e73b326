"""数据库模型"""
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from pgvector.sqlalchemy import Vector

from .db import Base

EMBEDDING_DIMENSIONS = 1536


class Alert(Base):
    """告警记录"""
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(String(20), unique=True, index=True)
    timestamp = Column(DateTime(timezone=True), index=True)
    status = Column(String(20), index=True)  # PROBLEM, OK, RESOLVED, UNKNOWN
    alert_type = Column(String(100))
    host = Column(String(100), index=True)
    interface = Column(String(100), nullable=True)
    severity = Column(String(20))  # CRITICAL, HIGH, WARNING, LOW
    provider = Column(String(50), nullable=True)
    duration_seconds = Column(Integer, default=0)
    description = Column(Text)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "problem_id": self.problem_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "status": self.status,
            "alert_type": self.alert_type,
            "host": self.host,
            "interface": self.interface,
            "severity": self.severity,
            "provider": self.provider,
            "duration_seconds": self.duration_seconds,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }


class FileUpload(Base):
    """文件上传记录"""
    __tablename__ = "file_uploads"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255))
    upload_date = Column(DateTime(timezone=True), server_default=func.now())
    records_count = Column(Integer)
    records_added = Column(Integer)
    records_skipped = Column(Integer)
    date_range_start = Column(DateTime(timezone=True), nullable=True)
    date_range_end = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(50))  # completed, failed

    def to_dict(self):
        return {
            "id": self.id,
            "filename": self.filename,
            "upload_date": self.upload_date.isoformat() if self.upload_date else None,
            "records_count": self.records_count,
            "records_added": self.records_added,
            "records_skipped": self.records_skipped,
            "date_range_start": self.date_range_start.isoformat() if self.date_range_start else None,
            "date_range_end": self.date_range_end.isoformat() if self.date_range_end else None,
            "status": self.status
        }
