"""告警问答Agent核心"""
from typing import Dict, List, Optional
import logging

from .query_router import QueryType, classify
from .sql_engine import SQLEngine
from ..rag.rag_engine import RAGEngine
from ..utils.exceptions import InvalidQuestionError

logger = logging.getLogger(__name__)

SUGGESTED_QUESTIONS = [
    {
        "category": "Statistics",
        "questions": [
            "How many total alerts do we have?",
            "Show me alerts from the last 2 days",
            "Which hosts have the most alerts?",
            "How many active problems are there?",
        ],
    },
    {
        "category": "Analysis",
        "questions": [
            "Why is Router-01 failing?",
            "Analyze the pattern of bandwidth issues",
            "What caused the recent outages?",
            "Explain the interface down alerts",
        ],
    },
    {
        "category": "Troubleshooting",
        "questions": [
            "What are the most critical alerts right now?",
            "Which interfaces are experiencing problems?",
            "Show me high severity alerts",
            "What hosts need immediate attention?",
        ],
    },
]


class AlertInsightAgent:
    """网络监控告警问答Agent

    llm 和 store 在进程启动时创建一次，通过构造函数注入。
    """

    def __init__(self, llm, store, rag_config: Optional[dict] = None):
        logger.info("Initializing Alert Insight Agent...")

        self.llm = llm
        self.store = store
        self.sql_engine = SQLEngine(llm, store)
        self.rag_engine = RAGEngine(llm, store, rag_config)

        logger.info("Alert Insight Agent initialized successfully")

    async def answer_question(self, question: str, history: Optional[List] = None) -> Dict:
        """回答问题，返回 {answer, type, metadata}"""
        if not question or not isinstance(question, str) or not question.strip():
            raise InvalidQuestionError("Message is required")

        history = history or []
        logger.info(f"Processing question: {question}")
        logger.info(f"Conversation history length: {len(history)}")

        query_type = classify(question)
        logger.info(f"Using {query_type.value.upper()} approach")

        if query_type == QueryType.RAG:
            return await self.rag_engine.answer(question, history)
        return await self.sql_engine.answer(question)
