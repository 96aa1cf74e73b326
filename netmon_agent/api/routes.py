"""API路由：问答与统计"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
import logging

from ..agent.agent_core import SUGGESTED_QUESTIONS
from ..agent.memory import ConversationTurn
from ..utils.exceptions import InvalidQuestionError, QueryRejectedError

router = APIRouter(prefix="/api/chat", tags=["Chat"])
stats_router = APIRouter(prefix="/api/stats", tags=["Stats"])
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    """问答请求"""
    message: Optional[str] = None
    history: List[ConversationTurn] = []


@router.post("")
async def chat(request: ChatRequest):
    """用AI回答关于告警的问题"""
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    from .main import get_agent
    agent = get_agent()

    try:
        response = await agent.answer_question(request.message, request.history)
    except (InvalidQuestionError, QueryRejectedError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing chat message: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process your question: {e}")

    return {
        "reply": response["answer"],
        "type": response["type"],
        "metadata": response["metadata"]
    }


@router.get("/suggestions")
async def get_suggestions():
    """推荐问题"""
    return {"suggestions": SUGGESTED_QUESTIONS}


@stats_router.get("/total")
async def get_total_alerts():
    """告警总数"""
    try:
        from .main import get_store
        return {"total": get_store().count_alerts()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting total alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@stats_router.get("/last-n-days")
async def get_alerts_last_n_days(days: int = 2):
    """最近N天的告警统计"""
    try:
        from .main import get_store
        alerts = get_store().alerts_since(days)

        stats = {
            "total": len(alerts),
            "active": sum(1 for a in alerts if a["status"] == "PROBLEM"),
            "resolved": sum(1 for a in alerts if a["status"] != "PROBLEM"),
            "bySeverity": {},
            "byType": {}
        }
        for alert in alerts:
            severity = alert.get("severity") or "UNKNOWN"
            stats["bySeverity"][severity] = stats["bySeverity"].get(severity, 0) + 1
            alert_type = alert.get("alert_type") or "UNKNOWN"
            stats["byType"][alert_type] = stats["byType"].get(alert_type, 0) + 1

        return {"days": days, "stats": stats, "alerts": alerts[:50]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting last N days alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@stats_router.get("/by-host")
async def get_alerts_by_host():
    """按主机统计"""
    try:
        from .main import get_store
        return {"hosts": get_store().alerts_by_host()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting alerts by host: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@stats_router.get("/active")
async def get_active_alerts():
    """未恢复的告警"""
    try:
        from .main import get_store
        alerts = get_store().active_alerts()
        return {"count": len(alerts), "alerts": alerts[:100]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting active alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@stats_router.get("/recent")
async def get_recent_alerts(limit: int = 50):
    """最近的告警"""
    try:
        from .main import get_store
        alerts = get_store().recent_alerts(limit)
        return {"count": len(alerts), "alerts": alerts}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting recent alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@stats_router.get("/summary")
async def get_summary():
    """仪表盘汇总"""
    try:
        from .main import get_store
        store = get_store()

        total = store.count_alerts()
        active = store.active_alerts()

        return {
            "totalAlerts": total,
            "activeAlerts": len(active),
            "resolvedAlerts": total - len(active),
            "topHosts": store.alerts_by_host()[:10],
            "recentAlerts": store.recent_alerts(10),
            "lastUpdated": datetime.now().isoformat()
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting summary: {e}")
        raise HTTPException(status_code=500, detail=str(e))
