"""SQL问答引擎：生成 -> 执行 -> 格式化"""
from typing import Dict, List
import json
import logging
import re

from .prompts import SQL_FORMAT_PROMPT, SQL_GENERATOR_PROMPT, SQL_RESULTS_TEMPLATE
from .query_router import QueryType
from ..utils.exceptions import ProviderError, QueryRejectedError, SQLGenerationError, StoreError

logger = logging.getLogger(__name__)

MAX_RESULT_ROWS = 100
MAX_FORMATTED_ROWS = 20
MAX_METADATA_ROWS = 10
DESCRIPTION_PREVIEW_LENGTH = 100
NO_RESULTS_ANSWER = "I couldn't find any results for that query."

_CODE_FENCE = re.compile(r"```(?:sql)?\s*", re.IGNORECASE)
_SELECT_PREFIX = re.compile(r"SELECT\b", re.IGNORECASE)


def clean_generated_sql(raw: str) -> str:
    """去掉markdown代码块和结尾分号"""
    query = _CODE_FENCE.sub("", raw.strip()).strip()
    if query.endswith(";"):
        query = query[:-1].rstrip()
    return query


def validate_query(query: str):
    """只允许SELECT开头的语句

    注意：只检查第一个关键字，不能防御多语句拼接或带副作用的子查询。
    """
    if not _SELECT_PREFIX.match(query.strip()):
        raise QueryRejectedError(query)


class SQLEngine:
    """自然语言转SQL并回答"""

    def __init__(self, llm, store):
        self.llm = llm
        self.store = store

    async def generate_query(self, question: str) -> str:
        messages = [
            {"role": "system", "content": SQL_GENERATOR_PROMPT},
            {"role": "user", "content": question},
        ]
        try:
            raw = await self.llm.complete(messages, temperature=0.3)
        except ProviderError as e:
            logger.error(f"Error generating SQL query: {e}")
            raise SQLGenerationError("Failed to generate SQL query") from e
        return clean_generated_sql(raw)

    def execute_query(self, query: str) -> List[Dict]:
        """校验后执行；执行失败时退化为直接读取告警表"""
        validate_query(query)

        try:
            return self.store.execute_readonly(query, limit=MAX_RESULT_ROWS)
        except StoreError as e:
            logger.warning(f"Generated query failed ({e}), falling back to unfiltered fetch")
            return self.store.fetch_alerts(limit=MAX_RESULT_ROWS)

    async def format_results(self, question: str, results: List[Dict]) -> str:
        if not results:
            return NO_RESULTS_ANSWER

        # 单行单列直接返回数值，不再调用LLM
        if len(results) == 1 and len(results[0]) == 1:
            value = next(iter(results[0].values()))
            return f"The answer is: {value}"

        cleaned = [self._shrink_row(row) for row in results[:MAX_FORMATTED_ROWS]]
        messages = [
            {"role": "system", "content": SQL_FORMAT_PROMPT},
            {"role": "user", "content": SQL_RESULTS_TEMPLATE.format(
                question=question,
                shown=len(cleaned),
                total=len(results),
                results=json.dumps(cleaned, indent=2, default=str)
            )},
        ]

        try:
            return await self.llm.complete(messages, temperature=0.5)
        except ProviderError as e:
            logger.error(f"Error formatting results: {e}")
            top_entries = ", ".join(
                str(row.get("host") or row.get("problem_id")) for row in cleaned[:5]
            )
            return f"Found {len(results)} results. Top entries include: {top_entries}"

    @staticmethod
    def _shrink_row(row: Dict) -> Dict:
        shrunk = {k: v for k, v in row.items() if k not in ("description", "embedding")}
        if "description" in row:
            description = row["description"]
            shrunk["description"] = (
                description[:DESCRIPTION_PREVIEW_LENGTH] + "..." if description else None
            )
        return shrunk

    async def answer(self, question: str) -> Dict:
        query = await self.generate_query(question)
        logger.info(f"Generated SQL: {query}")

        results = self.execute_query(query)
        logger.info(f"Query results: {len(results)} rows")

        answer = await self.format_results(question, results)

        return {
            "answer": answer,
            "type": QueryType.SQL.value,
            "metadata": {
                "query": query,
                "resultCount": len(results),
                "results": results[:MAX_METADATA_ROWS]
            }
        }
