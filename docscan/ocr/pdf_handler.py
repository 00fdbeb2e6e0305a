"""PDF to image conversion for local OCR of multi-page documents."""

import numpy as np
from pdf2image import convert_from_bytes

from docscan.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Rasterizes PDF documents so each page can be recognized separately.

    Args:
        dpi: Resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(self, pdf_bytes: bytes) -> list[np.ndarray]:
        """Convert raw PDF bytes to a list of page images.

        Args:
            pdf_bytes: Raw PDF content.

        Returns:
            List of images as numpy arrays (RGB format), one per page.

        Raises:
            RuntimeError: If PDF conversion fails.
        """
        try:
            pil_images = convert_from_bytes(pdf_bytes, dpi=self.dpi)
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
