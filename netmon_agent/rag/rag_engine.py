"""RAG检索问答引擎"""
from datetime import datetime
from typing import Dict, List, Optional
import logging

from ..agent.memory import recent_history
from ..agent.prompts import RAG_QUESTION_TEMPLATE, RAG_SYSTEM_PROMPT
from ..agent.query_router import QueryType

logger = logging.getLogger(__name__)

NO_RELEVANT_DATA_ANSWER = (
    "I couldn't find any relevant alerts to answer your question. "
    "Try asking about specific hosts, time periods, or alert types."
)


class RAGEngine:
    """基于告警向量相似度的检索增强生成引擎"""

    def __init__(self, llm, store, config: Optional[dict] = None):
        config = config or {}
        self.llm = llm
        self.store = store
        self.min_similarity = config.get("min_similarity_score", 0.7)
        self.top_k = config.get("top_k", 10)
        self.temperature = config.get("temperature", 0.7)
        self.max_tokens = config.get("max_tokens", 1000)

        logger.info("RAG Engine initialized successfully")

    async def retrieve(self, question: str) -> List[Dict]:
        """检索与问题相似的告警"""
        embedding = await self.llm.embed(question)
        alerts = self.store.similarity_search(embedding, self.min_similarity, self.top_k)
        logger.info(f"Retrieved {len(alerts)} alerts for query: {question[:50]}...")
        return alerts

    def format_retrieved_context(self, alerts: List[Dict]) -> str:
        """格式化检索结果为上下文"""
        context_parts = ["Relevant Network Monitoring Alerts:\n"]

        for i, alert in enumerate(alerts, 1):
            lines = [
                f"Alert {i}:",
                f"- Problem ID: {alert.get('problem_id')}",
                f"- Host: {alert.get('host')}",
                f"- Status: {alert.get('status')}",
                f"- Timestamp: {self._format_timestamp(alert.get('timestamp'))}",
                f"- Description: {alert.get('description')}",
            ]
            if alert.get("interface"):
                lines.append(f"- Interface: {alert['interface']}")
            if alert.get("severity"):
                lines.append(f"- Severity: {alert['severity']}")
            if alert.get("duration_seconds"):
                lines.append(f"- Duration: {alert['duration_seconds'] // 60} minutes")
            lines.append(f"- Similarity: {alert.get('similarity', 0) * 100:.1f}%")

            context_parts.append("\n".join(lines) + "\n")

        return "\n".join(context_parts)

    @staticmethod
    def _format_timestamp(value) -> str:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError:
                return value
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
        return str(value)

    def build_messages(self, question: str, context: str, history=None) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": RAG_SYSTEM_PROMPT}]
        messages.extend(recent_history(history))
        messages.append({
            "role": "user",
            "content": RAG_QUESTION_TEMPLATE.format(context=context, question=question)
        })
        return messages

    @staticmethod
    def sources_suffix(alerts: List[Dict]) -> str:
        first = alerts[0].get("similarity", 0) * 100
        last = alerts[-1].get("similarity", 0) * 100
        return (
            f"\n\nSources: {len(alerts)} relevant alert(s) analyzed "
            f"(similarity: {first:.0f}% - {last:.0f}%)"
        )

    async def answer(self, question: str, history=None) -> Dict:
        alerts = await self.retrieve(question)

        if not alerts:
            return {
                "answer": NO_RELEVANT_DATA_ANSWER,
                "type": QueryType.RAG.value,
                "metadata": {
                    "sources": [],
                    "relevantCount": 0
                }
            }

        context = self.format_retrieved_context(alerts)
        messages = self.build_messages(question, context, history)

        answer = await self.llm.complete(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

        return {
            "answer": answer + self.sources_suffix(alerts),
            "type": QueryType.RAG.value,
            "metadata": {
                "sources": [
                    {
                        "problem_id": alert.get("problem_id"),
                        "host": alert.get("host"),
                        "timestamp": alert.get("timestamp"),
                        "description": alert.get("description"),
                        "similarity": alert.get("similarity")
                    }
                    for alert in alerts
                ],
                "relevantCount": len(alerts)
            }
        }
