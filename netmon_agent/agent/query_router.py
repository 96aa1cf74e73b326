"""问题路由：SQL 还是 RAG"""
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class QueryType(str, Enum):
    SQL = "sql"
    RAG = "rag"


SQL_KEYWORDS = [
    "how many",
    "count",
    "total",
    "show",
    "list",
    "get",
    "find",
    "what are",
    "which",
    "when",
    "statistics",
    "stats",
    "number of",
    "hosts",
    "alerts",
    "last",
    "recent",
]

RAG_KEYWORDS = [
    "why",
    "analyze",
    "recommend",
    "explain",
    "pattern",
    "trend",
    "cause",
    "reason",
    "what happened",
    "diagnose",
    "investigate",
    "understand",
    "insight",
    "suggest",
]


def should_use_sql(question: str) -> bool:
    lowered = question.lower()
    return any(keyword in lowered for keyword in SQL_KEYWORDS)


def should_use_rag(question: str) -> bool:
    lowered = question.lower()
    return any(keyword in lowered for keyword in RAG_KEYWORDS)


def classify(question: str) -> QueryType:
    """先判断SQL关键词，两类都命中时走SQL；都未命中默认SQL"""
    if should_use_sql(question):
        return QueryType.SQL
    if should_use_rag(question):
        return QueryType.RAG
    logger.info("No routing keyword matched, defaulting to SQL")
    return QueryType.SQL
