"""为缺少向量的告警补全向量

用法: python -m netmon_agent.scripts.generate_embeddings [--batch-size 10]
"""
import argparse
import asyncio
import logging
import sys

from ..database.db import SessionLocal
from ..database.store import AlertStore
from ..rag.knowledge_base import AlertKnowledgeBase
from ..rag.llm_provider import LLMProvider
from ..utils.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Generate embeddings for alerts that don't have them")
    parser.add_argument("--batch-size", type=int, default=settings.EMBEDDING_BATCH_SIZE,
                        help="Alerts embedded per batch")
    parser.add_argument("--batch-delay", type=float, default=settings.EMBEDDING_BATCH_DELAY,
                        help="Seconds to wait between batches")
    args = parser.parse_args()

    knowledge_base = AlertKnowledgeBase(
        LLMProvider(settings.LLM_CONFIG),
        AlertStore(SessionLocal),
        ingest_config={"batch_size": args.batch_size, "batch_delay": args.batch_delay}
    )

    try:
        result = asyncio.run(knowledge_base.backfill_embeddings())
    except Exception as e:
        logger.error(f"Embedding generation failed: {e}")
        sys.exit(1)

    print("=== Embedding generation complete ===")
    print(f"Alerts without embeddings: {result['total']}")
    print(f"Successfully processed: {result['processed']}")
    print(f"Failed: {result['failed']}")


if __name__ == "__main__":
    main()
