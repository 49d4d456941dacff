"""
简历文本提取服务
"""
import asyncio
import io

from pypdf import PdfReader
from loguru import logger

from app.core.exceptions import ExtractionError


class PdfTextExtractor:
    """使用 pypdf 从 PDF 中提取纯文本"""

    def extract_sync(self, data: bytes) -> str:
        try:
            reader = PdfReader(io.BytesIO(data))
            parts = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            logger.warning("PDF 文本提取失败: {}", exc)
            raise ExtractionError("无法从 PDF 中提取文本") from exc
        return "\n".join(parts).strip()

    async def extract(self, data: bytes) -> str:
        return await asyncio.to_thread(self.extract_sync, data)


_extractor = PdfTextExtractor()


def get_text_extractor() -> PdfTextExtractor:
    """FastAPI 依赖"""
    return _extractor
