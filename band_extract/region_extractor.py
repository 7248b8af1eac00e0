#!/usr/bin/env python3
"""
Region Extractor - pdfplumber-backed text extraction for page rectangles

The scanner and rule extractors work in PDF user space (origin bottom-left,
y grows upward). pdfplumber measures from the top of the page, so every
rectangle is flipped and clipped to the page box here. Rectangles that fall
partly off the page return the text of the visible part; rectangles that
fall completely off the page return ''.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pdfplumber

from .exceptions import DocumentOpenError, ExtractionError

logger = logging.getLogger(__name__)


class PdfplumberRegionExtractor:
    """Open PDFs and extract text inside rectangles with pdfplumber"""

    def __init__(self, extract_kwargs: Optional[Dict[str, Any]] = None):
        """
        Initialize region extractor

        Args:
            extract_kwargs: Extra keyword arguments for page.extract_text()
                            (e.g. x_tolerance). Layout mode is left off so
                            each band gets plain positional text.
        """
        self.extract_kwargs = dict(extract_kwargs or {})

    @contextmanager
    def open_document(self, path) -> Iterator[Any]:
        """
        Open a PDF for the duration of a with-block

        Raises:
            DocumentOpenError: the file is missing or is not a readable PDF
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise DocumentOpenError(file_path, FileNotFoundError(str(file_path)))

        try:
            pdf = pdfplumber.open(file_path)
        except Exception as e:
            raise DocumentOpenError(file_path, e) from e

        try:
            try:
                # Page tree is parsed lazily; a broken xref only shows up here
                page_count = len(pdf.pages)
            except Exception as e:
                raise DocumentOpenError(file_path, e) from e
            logger.debug(f"Opened {file_path.name} ({page_count} page(s))")
            yield pdf
        finally:
            pdf.close()

    def pages(self, document) -> List[Any]:
        return list(document.pages)

    def page_size(self, page) -> Tuple[float, float]:
        """(width, height) of a page in points"""
        return float(page.width), float(page.height)

    def extract_text(self, page, x: float, y: float, width: float, height: float) -> str:
        """
        Text inside the rectangle (x, y, width, height), PDF user space

        Raises:
            ExtractionError: pdfplumber failed on the region
        """
        bbox = self._to_page_bbox(page, x, y, width, height)
        if bbox is None:
            return ''

        try:
            region = page.crop(bbox)
            text = region.extract_text(**self.extract_kwargs)
        except Exception as e:
            page_number = getattr(page, 'page_number', '?')
            raise ExtractionError(
                f"Text extraction failed on page {page_number} at "
                f"x={x:.1f} y={y:.1f} w={width:.1f} h={height:.1f}",
                component='region_extractor',
                original_error=e
            ) from e

        return text or ''

    @staticmethod
    def _to_page_bbox(page, x: float, y: float, width: float, height: float) -> Optional[Tuple[float, float, float, float]]:
        """Flip to pdfplumber (x0, top, x1, bottom) and clip to the page box"""
        page_x0, page_top, page_x1, page_bottom = (float(v) for v in page.bbox)
        page_height = page_bottom - page_top

        x0 = max(page_x0 + x, page_x0)
        x1 = min(page_x0 + x + width, page_x1)
        top = max(page_top + page_height - (y + height), page_top)
        bottom = min(page_top + page_height - y, page_bottom)

        if x1 <= x0 or bottom <= top:
            return None
        return x0, top, x1, bottom
