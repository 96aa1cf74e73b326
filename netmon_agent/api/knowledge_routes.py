"""文件上传API"""
from fastapi import APIRouter, HTTPException, UploadFile, File
from typing import List
import logging

from ..utils.config import settings
from ..utils.exceptions import UnsupportedDocumentError

router = APIRouter(prefix="/api/upload", tags=["Upload"])
logger = logging.getLogger(__name__)

HTML_EXTENSIONS = (".html", ".htm")


def validate_upload(file: UploadFile):
    """只接受HTML文件"""
    filename = (file.filename or "").lower()
    if (file.content_type or "").startswith("text/html") or filename.endswith(HTML_EXTENSIONS):
        return
    raise UnsupportedDocumentError(f"Only HTML files are allowed: {file.filename}")


async def read_upload(file: UploadFile) -> str:
    content = await file.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(status_code=413, detail=f"File too large: {file.filename}")
    return content.decode("utf-8", errors="replace")


@router.post("/analyze")
async def analyze_file(file: UploadFile = File(...)):
    """分析HTML文件并返回预览"""
    try:
        validate_upload(file)
    except UnsupportedDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    content = await read_upload(file)

    try:
        from .main import get_knowledge_base
        knowledge_base = get_knowledge_base()

        return knowledge_base.analyze_document(file.filename, content)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing file: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to analyze file: {e}")


@router.post("/process")
async def process_files(files: List[UploadFile] = File(...)):
    """解析HTML文件并导入数据库"""
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"At most {settings.MAX_UPLOAD_FILES} files per upload")

    documents = []
    for file in files:
        try:
            validate_upload(file)
        except UnsupportedDocumentError as e:
            raise HTTPException(status_code=400, detail=str(e))
        documents.append((file.filename, await read_upload(file)))

    try:
        from .main import get_knowledge_base
        knowledge_base = get_knowledge_base()

        return await knowledge_base.ingest_documents(documents)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing upload: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process upload: {e}")


@router.get("/history")
async def get_upload_history(limit: int = 10):
    """上传历史"""
    try:
        from .main import get_store
        history = get_store().upload_history(limit)

        return {"history": history, "count": len(history)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting upload history: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get upload history: {e}")
