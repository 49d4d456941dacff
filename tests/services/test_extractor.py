"""
PDF 文本提取测试
"""
import io

import pytest
from pypdf import PdfWriter

from app.core.exceptions import ExtractionError
from app.services.extractor import PdfTextExtractor


def blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_extract_blank_pdf():
    """测试没有文字的 PDF 返回空字符串"""
    assert await PdfTextExtractor().extract(blank_pdf()) == ""


@pytest.mark.asyncio
async def test_extract_invalid_pdf():
    """测试无法解析的文件抛出 ExtractionError"""
    with pytest.raises(ExtractionError):
        await PdfTextExtractor().extract(b"this is not a pdf")
