#!/usr/bin/env python3
"""
Band Scanner - Slice a page into horizontal bands from top to bottom

Each band spans the full page width. The first band sits at the top edge
(y = page_height - band_height) and every following band is one band
height lower; the last band may reach below y = 0; the region extractor
clips it to the page.

Band height is either explicit (ScanConfig.band_height) or derived from the
page aspect ratio. The derived value is computed from the first page that
needs it and kept for the rest of the document unless
ScanConfig.per_page_height is set. Create one scanner per document.
"""

import logging
import math
from typing import Callable, Iterator, List, Optional

from .models import BandContext, ScanConfig
from .text_cleaner import clean_text

logger = logging.getLogger(__name__)


class BandScanner:
    """Produce cleaned BandContext objects for the pages of one document"""

    def __init__(
        self,
        region_extractor,
        config: Optional[ScanConfig] = None,
        cleaner: Optional[Callable[[str], str]] = None
    ):
        """
        Initialize band scanner

        Args:
            region_extractor: Object with extract_text(page, x, y, width, height)
                              and page_size(page)
            config: Scan geometry (defaults to ScanConfig())
            cleaner: Text cleanup function (defaults to clean_text)
        """
        self.region_extractor = region_extractor
        self.config = config or ScanConfig()
        self.cleaner = cleaner or clean_text
        self._band_height: Optional[float] = None

    def band_height_for(self, page_width: float, page_height: float) -> float:
        """Band height to use for a page of the given size"""
        if self.config.per_page_height or self._band_height is None:
            band_height = self.config.derive_band_height(page_width, page_height)
            if self._band_height is None:
                logger.debug(f"Band height set to {band_height:.2f} (page {page_width:.1f}x{page_height:.1f})")
            self._band_height = band_height
        return self._band_height

    @staticmethod
    def band_offsets(page_height: float, band_height: float) -> List[float]:
        """
        y coordinates of the bands, top band first

        ceil(page_height / band_height) bands; the last one may start below 0.
        """
        # round() absorbs float noise such as 100 / (100 / 3)
        count = math.ceil(round(page_height / band_height, 9))
        return [page_height - (i + 1) * band_height for i in range(count)]

    def scan(self, page, page_number: int = 1) -> Iterator[BandContext]:
        """
        Lazily yield the non-blank bands of a page

        Args:
            page: Page handle understood by the region extractor
            page_number: 1-based page number (for logging and context)

        Yields:
            BandContext with cleaned text, top band first
        """
        page_width, page_height = self.region_extractor.page_size(page)
        band_height = self.band_height_for(page_width, page_height)

        for y in self.band_offsets(page_height, band_height):
            raw = self.region_extractor.extract_text(page, 0.0, y, page_width, band_height)
            if not raw or not raw.strip():
                continue

            text = self.cleaner(raw)
            logger.debug(f"Page {page_number} band y={y:.1f}: {text}")

            yield BandContext(
                page=page,
                x=0.0,
                y=y,
                width=page_width,
                height=band_height,
                text=text,
                band_height=band_height,
                traverse_width=self.config.traverse_width,
                region_extractor=self.region_extractor,
                cleaner=self.cleaner,
                page_number=page_number,
            )
