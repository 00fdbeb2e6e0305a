"""Local OCR collaborator backed by Tesseract.

Recognizes each page with ``pytesseract`` and reports the mean word
confidence as the page confidence. Blocking Tesseract calls run in a
worker thread so the scan coroutine is never blocked.
"""

import asyncio
import io
from collections.abc import Sequence

import numpy as np
import pytesseract
from PIL import Image, UnidentifiedImageError

from docscan.core.errors import RecognitionError
from docscan.core.result import Err, Ok, Outcome
from docscan.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .types import BoundingBox, Document, DocumentFormat, RecognizedPage

logger = get_logger(__name__)


class TesseractOCRProvider:
    """OCR provider running Tesseract on the local machine.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
        pdf_dpi: Resolution used to rasterize PDF pages.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
        pdf_dpi: int = 300,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self.pdf_handler = PDFHandler(dpi=pdf_dpi)

    async def process_documents(
        self, documents: Sequence[Document]
    ) -> Outcome[list[list[RecognizedPage]], Exception]:
        """Recognize every page of every document, in order.

        Args:
            documents: Documents to recognize.

        Returns:
            Pages per document, or the first recognition failure.
        """
        results: list[list[RecognizedPage]] = []
        for document in documents:
            try:
                pages = await asyncio.to_thread(self._recognize_document, document)
            except (
                pytesseract.TesseractError,
                UnidentifiedImageError,
                RuntimeError,
                OSError,
            ) as exc:
                logger.warning(
                    "Tesseract failed on %s: %s", document.display_name, exc
                )
                return Err(RecognitionError(str(exc)))
            results.append(pages)
        return Ok(results)

    def _recognize_document(self, document: Document) -> list[RecognizedPage]:
        content = document.read_bytes()
        if document.type == DocumentFormat.PDF or content[:4] == b"%PDF":
            images = self.pdf_handler.pdf_to_images(content)
        else:
            images = [np.array(Image.open(io.BytesIO(content)))]

        return [
            self.extract_text(image, page_number=i)
            for i, image in enumerate(images, start=1)
        ]

    def extract_text(self, image: np.ndarray, page_number: int = 1) -> RecognizedPage:
        """Extract text from one page image.

        Args:
            image: Page image as a numpy array.
            page_number: 1-based page index.

        Returns:
            Recognized page with the average word confidence.
        """
        config = f"--psm {self.psm}"
        pil_image = Image.fromarray(image)
        text = pytesseract.image_to_string(
            pil_image, lang=self.default_lang, config=config
        )
        data = pytesseract.image_to_data(
            pil_image,
            lang=self.default_lang,
            config=config,
            output_type=pytesseract.Output.DICT,
        )

        total_conf = 0.0
        word_count = 0
        for conf, word_text in zip(data["conf"], data["text"], strict=False):
            conf = float(conf)
            if conf > 0 and word_text.strip():
                total_conf += conf
                word_count += 1

        avg_conf = (total_conf / word_count / 100.0) if word_count > 0 else 0.0
        height, width = image.shape[:2]

        logger.info(
            "OCR page %d: %d words with average confidence %.2f",
            page_number,
            word_count,
            avg_conf,
        )
        return RecognizedPage(
            text=text,
            confidence=avg_conf,
            page_number=page_number,
            bounding_box=BoundingBox(x=0, y=0, width=width, height=height),
        )
