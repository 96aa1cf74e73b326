"""告警向量化

入库和补全向量脚本必须使用同一个拼接规则，否则检索结果会不一致。
"""
from typing import Dict, List, Optional, Sequence, Union
import asyncio
import logging

from ..parsers.alert_parser import AlertRecord

logger = logging.getLogger(__name__)

EMBEDDING_FIELDS = ("host", "alert_type", "description", "interface", "status", "severity")
EMBEDDING_SEPARATOR = " | "


def compose_alert_text(alert: Union[AlertRecord, Dict]) -> str:
    """拼接用于向量化的告警文本"""
    if isinstance(alert, AlertRecord):
        alert = alert.to_dict(include_embedding=False)
    values = [alert.get(name) for name in EMBEDDING_FIELDS]
    return EMBEDDING_SEPARATOR.join(str(v) for v in values if v is not None)


async def embed_alert(llm, alert: Union[AlertRecord, Dict]) -> List[float]:
    return await llm.embed(compose_alert_text(alert))


async def embed_in_batches(llm, alerts: Sequence[Union[AlertRecord, Dict]],
                           batch_size: int = 10,
                           batch_delay: float = 1.0) -> List[Optional[List[float]]]:
    """分批生成向量，批次之间暂停以避免限流

    返回与输入顺序一致的列表，失败的告警对应 None。
    """
    embeddings: List[Optional[List[float]]] = []
    total_batches = (len(alerts) + batch_size - 1) // batch_size

    for start in range(0, len(alerts), batch_size):
        batch = alerts[start:start + batch_size]
        logger.info(f"Embedding batch {start // batch_size + 1}/{total_batches}")

        results = await asyncio.gather(
            *(embed_alert(llm, alert) for alert in batch),
            return_exceptions=True
        )
        for alert, result in zip(batch, results):
            if isinstance(result, Exception):
                problem_id = alert.problem_id if isinstance(alert, AlertRecord) else alert.get("problem_id")
                logger.warning(f"Embedding failed for alert {problem_id}: {result}")
                embeddings.append(None)
            else:
                embeddings.append(result)

        if start + batch_size < len(alerts):
            await asyncio.sleep(batch_delay)

    return embeddings
