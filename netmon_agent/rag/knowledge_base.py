"""告警知识库管理：导入、去重、向量化"""
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .embedding import embed_in_batches
from ..parsers.alert_parser import AlertRecord, parse
from ..parsers.preview import summarize
from ..utils.exceptions import StoreError

logger = logging.getLogger(__name__)

INSERT_CHUNK_SIZE = 100


class AlertKnowledgeBase:
    """告警知识库管理器"""

    def __init__(self, llm, store, ingest_config: Optional[dict] = None):
        ingest_config = ingest_config or {}
        self.llm = llm
        self.store = store
        self.batch_size = ingest_config.get("batch_size", 10)
        self.batch_delay = ingest_config.get("batch_delay", 1.0)

        logger.info("Alert knowledge base initialized")

    def analyze_document(self, filename: str, content: str) -> Dict:
        """导入前预览：统计信息和重复数量"""
        alerts = parse(content)
        preview = summarize(alerts)

        duplicates = sum(1 for alert in alerts if self.store.exists(alert.problem_id))

        return {
            "filename": filename,
            **preview,
            "duplicatesFound": duplicates,
            "newAlerts": preview["totalMessages"] - duplicates
        }

    def _split_new_alerts(self, alerts: List[AlertRecord]) -> Tuple[List[AlertRecord], int]:
        """按problem_id去重（库内已存在或同一文件内重复）"""
        new_alerts = []
        seen = set()
        skipped = 0

        for alert in alerts:
            if alert.problem_id in seen or self.store.exists(alert.problem_id):
                skipped += 1
                continue
            seen.add(alert.problem_id)
            new_alerts.append(alert)

        return new_alerts, skipped

    async def ingest_document(self, filename: str, content: str) -> Dict:
        """导入单个文件

        某个分块插入失败时停止导入，已提交的分块保留并计入结果，结果带 error 字段。
        """
        logger.info(f"Processing file: {filename}")

        alerts = parse(content)
        logger.info(f"Parsed {len(alerts)} alerts from {filename}")

        new_alerts, skipped = self._split_new_alerts(alerts)

        # 向量化失败的告警仍然入库，只是无法被相似度检索到
        embeddings = await embed_in_batches(
            self.llm, new_alerts,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay
        )
        for alert, embedding in zip(new_alerts, embeddings):
            alert.embedding = embedding

        added = attempted = 0
        error = None
        for start in range(0, len(new_alerts), INSERT_CHUNK_SIZE):
            chunk = new_alerts[start:start + INSERT_CHUNK_SIZE]
            try:
                added += len(self.store.insert_batch(chunk))
            except StoreError as e:
                logger.error(f"Insert failed for {filename} after {added} alerts: {e}")
                error = str(e)
                break
            attempted += len(chunk)

        # 并发导入时唯一约束冲突的记录算作跳过
        skipped += attempted - added

        result = {
            "filename": filename,
            "totalAlerts": len(alerts),
            "added": added,
            "skipped": skipped
        }
        date_range = summarize(alerts)["dateRange"]

        if error is not None:
            self._record_failed_upload(filename, len(alerts), added, skipped, date_range)
            result["error"] = error
            return result

        self.store.insert_upload(
            filename=filename,
            records_count=len(alerts),
            records_added=added,
            records_skipped=skipped,
            date_range_start=date_range["start"],
            date_range_end=date_range["end"],
            status="completed"
        )
        return result

    async def ingest_documents(self, documents: Sequence[Tuple[str, str]]) -> Dict:
        """导入多个文件，单个文件失败不影响其他文件"""
        file_results = []
        total_alerts = total_added = total_skipped = 0

        for filename, content in documents:
            try:
                result = await self.ingest_document(filename, content)
            except Exception as e:
                logger.error(f"Error processing file {filename}: {e}")
                self._record_failed_upload(filename)
                result = {"filename": filename, "totalAlerts": 0, "added": 0, "skipped": 0, "error": str(e)}

            total_alerts += result["totalAlerts"]
            total_added += result["added"]
            total_skipped += result["skipped"]
            file_results.append(result)

        return {
            "success": True,
            "summary": {
                "filesProcessed": len(documents),
                "totalAlerts": total_alerts,
                "recordsAdded": total_added,
                "recordsSkipped": total_skipped
            },
            "files": file_results
        }

    def _record_failed_upload(self, filename: str, records_count: int = 0, added: int = 0,
                              skipped: int = 0, date_range: Optional[dict] = None):
        date_range = date_range or {}
        try:
            self.store.insert_upload(
                filename=filename,
                records_count=records_count,
                records_added=added,
                records_skipped=skipped,
                date_range_start=date_range.get("start"),
                date_range_end=date_range.get("end"),
                status="failed"
            )
        except StoreError as e:
            logger.error(f"Error recording failed upload: {e}")

    async def backfill_embeddings(self) -> Dict:
        """为缺少向量的已入库告警补全向量"""
        alerts = self.store.alerts_missing_embedding()
        if not alerts:
            logger.info("All alerts already have embeddings")
            return {"total": 0, "processed": 0, "failed": 0}

        logger.info(f"Found {len(alerts)} alerts without embeddings")
        embeddings = await embed_in_batches(
            self.llm, alerts,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay
        )

        processed = failed = 0
        for alert, embedding in zip(alerts, embeddings):
            if embedding is None:
                failed += 1
                continue
            try:
                self.store.set_embedding(alert["id"], embedding)
                processed += 1
            except StoreError as e:
                logger.error(f"Failed to update alert {alert['id']}: {e}")
                failed += 1

        return {"total": len(alerts), "processed": processed, "failed": failed}
