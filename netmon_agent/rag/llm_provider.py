"""LLM / Embedding 客户端"""
from typing import Dict, List, Optional
import logging

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from pydantic import SecretStr

from ..utils.exceptions import ProviderError

logger = logging.getLogger(__name__)

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(messages: List[Dict[str, str]]) -> List[BaseMessage]:
    """把 {role, content} 字典转换为LangChain消息"""
    converted = []
    for message in messages:
        message_cls = _MESSAGE_TYPES.get(message.get("role"), HumanMessage)
        converted.append(message_cls(content=message.get("content", "")))
    return converted


class LLMProvider:
    """封装对话补全与文本向量化"""

    def __init__(self, config: dict):
        self.config = config

        client_config = {
            "api_key": SecretStr(config.get("openai_api_key") or ""),
            "timeout": config.get("timeout", 30),
            "max_retries": 0  # 不自动重试
        }
        # 兼容OpenAI接口的其他服务（如阿里云 DashScope）
        if config.get("base_url"):
            client_config["base_url"] = config["base_url"]

        self.llm = ChatOpenAI(
            model=config.get("model", "gpt-4o-mini"),
            temperature=0.7,
            max_tokens=1000,
            **client_config
        )

        self.embeddings = OpenAIEmbeddings(
            model=config.get("embedding_model", "text-embedding-3-small"),
            dimensions=config.get("embedding_dimensions", 1536),
            **client_config
        )

        logger.info(f"LLM provider initialized (model: {config.get('model', 'gpt-4o-mini')})")

    async def embed(self, text: str) -> List[float]:
        """生成文本向量"""
        try:
            return await self.embeddings.aembed_query(text)
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise ProviderError("embed", str(e)) from e

    async def complete(self, messages: List[Dict[str, str]],
                       temperature: float = 0.7,
                       max_tokens: Optional[int] = 1000) -> str:
        """生成对话补全"""
        try:
            response = await self.llm.ainvoke(
                to_langchain_messages(messages),
                temperature=temperature,
                max_tokens=max_tokens
            )
            return response.content
        except Exception as e:
            logger.error(f"Error generating chat completion: {e}")
            raise ProviderError("complete", str(e)) from e
