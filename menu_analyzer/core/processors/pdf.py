from __future__ import annotations

from typing import Optional

import fitz  # PyMuPDF

PDF_SIGNATURE = b"%PDF"


class PDFProcessor:
    def has_signature(self, data: bytes) -> bool:
        return data[: len(PDF_SIGNATURE)] == PDF_SIGNATURE

    def extract_text(self, data: bytes) -> str:
        """
        Read the embedded text layer of every page.

        Returns an empty string for scanned PDFs that carry no text layer.
        Raises whatever PyMuPDF raises for documents it cannot open.
        """
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages = [doc[page_num].get_text("text") for page_num in range(len(doc))]
        finally:
            doc.close()
        return "\n".join(page.strip() for page in pages if page.strip())


# convenient singleton
_pdf_processor: Optional[PDFProcessor] = None


def get_pdf_processor() -> PDFProcessor:
    global _pdf_processor
    if _pdf_processor is None:
        _pdf_processor = PDFProcessor()
    return _pdf_processor
