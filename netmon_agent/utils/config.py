"""配置管理"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置"""

    # OpenAI配置
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 1536
    LLM_TIMEOUT: float = 30.0

    # 数据库配置
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "netmon"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_TIMEOUT: float = 30.0

    # 检索配置
    MIN_SIMILARITY_SCORE: float = 0.7
    RAG_TOP_K: int = 10

    # 导入配置
    EMBEDDING_BATCH_SIZE: int = 10
    EMBEDDING_BATCH_DELAY: float = 1.0
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 10

    @property
    def DATABASE_URL(self) -> str:
        """数据库连接URL"""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def DB_CONNECT_ARGS(self) -> dict:
        """数据库连接参数：连接超时和语句超时"""
        return {
            "connect_timeout": max(1, int(self.DB_TIMEOUT)),
            "options": f"-c statement_timeout={int(self.DB_TIMEOUT * 1000)}"
        }

    @property
    def LLM_CONFIG(self) -> dict:
        """LLM配置字典"""
        return {
            "openai_api_key": self.OPENAI_API_KEY,
            "base_url": self.OPENAI_BASE_URL,
            "model": self.OPENAI_MODEL,
            "embedding_model": self.EMBEDDING_MODEL,
            "embedding_dimensions": self.EMBEDDING_DIMENSIONS,
            "timeout": self.LLM_TIMEOUT
        }

    @property
    def RAG_CONFIG(self) -> dict:
        """RAG配置字典"""
        return {
            "min_similarity_score": self.MIN_SIMILARITY_SCORE,
            "top_k": self.RAG_TOP_K
        }

    @property
    def INGEST_CONFIG(self) -> dict:
        """导入配置字典"""
        return {
            "batch_size": self.EMBEDDING_BATCH_SIZE,
            "batch_delay": self.EMBEDDING_BATCH_DELAY
        }

    class Config:
        env_file = ".env"
        case_sensitive = True


# 全局配置实例
settings = Settings()
