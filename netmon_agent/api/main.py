"""FastAPI主应用"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from datetime import datetime
import logging
from contextlib import asynccontextmanager

from ..agent.agent_core import AlertInsightAgent
from ..database.db import SessionLocal, init_db
from ..database.store import AlertStore
from ..rag.knowledge_base import AlertKnowledgeBase
from ..rag.llm_provider import LLMProvider
from ..utils.config import settings
from .routes import router as chat_router, stats_router
from .knowledge_routes import router as upload_router

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 全局实例（启动时初始化）
agent: Optional[AlertInsightAgent] = None
knowledge_base: Optional[AlertKnowledgeBase] = None
store: Optional[AlertStore] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    global agent, knowledge_base, store

    # Startup
    logger.info("Starting Network Monitoring Insight Agent...")

    try:
        init_db()

        llm = LLMProvider(settings.LLM_CONFIG)
        store = AlertStore(SessionLocal)
        agent = AlertInsightAgent(llm, store, rag_config=settings.RAG_CONFIG)
        knowledge_base = AlertKnowledgeBase(llm, store, ingest_config=settings.INGEST_CONFIG)

        logger.info("Network Monitoring Insight Agent started successfully")
    except Exception as e:
        logger.error(f"Failed to start agent: {e}")
        raise

    yield  # 应用运行期间

    # Shutdown
    logger.info("Shutting down Network Monitoring Insight Agent...")


app = FastAPI(
    title="Network Monitoring Insight Agent API",
    version="1.0.0",
    lifespan=lifespan
)

# CORS配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 包含路由
app.include_router(chat_router)
app.include_router(stats_router)
app.include_router(upload_router)


@app.get("/")
async def root():
    """根路径"""
    return {
        "service": "Network Monitoring Insight Agent",
        "version": "1.0.0",
        "status": "running",
        "timestamp": datetime.now().isoformat()
    }


@app.get("/health")
async def health_check():
    """健康检查端点"""
    return {
        "status": "healthy",
        "agent_ready": agent is not None,
        "timestamp": datetime.now().isoformat()
    }


def get_agent() -> AlertInsightAgent:
    """获取Agent实例"""
    if agent is None:
        raise HTTPException(status_code=503, detail="Agent not initialized")
    return agent


def get_knowledge_base() -> AlertKnowledgeBase:
    """获取知识库实例"""
    if knowledge_base is None:
        raise HTTPException(status_code=503, detail="Knowledge base not initialized")
    return knowledge_base


def get_store() -> AlertStore:
    """获取存储实例"""
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return store


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
