"""对话历史处理

历史由调用方在每次请求中传入，服务端不保存会话。
"""
from typing import Dict, List, Literal, Optional, Sequence, Union
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# 最近3轮对话
MAX_HISTORY_MESSAGES = 6


class ConversationTurn(BaseModel):
    """一条对话消息"""
    role: Literal["user", "assistant"]
    content: str


def recent_history(history: Optional[Sequence[Union[ConversationTurn, Dict]]],
                   limit: int = MAX_HISTORY_MESSAGES) -> List[Dict[str, str]]:
    """取最近的若干条消息，转换为 {role, content}"""
    if not history:
        return []

    messages = []
    for turn in list(history)[-limit:]:
        if not isinstance(turn, ConversationTurn):
            turn = ConversationTurn(**turn)
        messages.append({"role": turn.role, "content": turn.content})
    return messages
