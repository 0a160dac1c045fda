import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """Extract the text layer of a PDF, page by page."""
    pages = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page in pdf.pages:
                text = page.extract_text()
                if text:
                    pages.append(text)
    except Exception as e:
        logger.warning(f"Could not read PDF: {e}")
        raise ValueError("The uploaded file is not a readable PDF") from e

    text = "\n\n".join(pages).strip()
    if not text:
        raise ValueError("The PDF has no extractable text")
    return text
