#!/usr/bin/env python3
"""
Document Processor - Run band scanning and rule resolution over documents

Processing Flow (per document):
1. Open the PDF (DocumentOpenError if it cannot be opened)
2. Start a ResultRecord with every rule name set to ''
3. For each page in order: scan bands, resolve the still-unresolved rules,
   merge new values (resolved values are never overwritten)
4. Stop early once every field has a value
5. Close the document on every exit path

Each document gets its own BandScanner and ResultRecord; the rule set,
cleaner and scan config are shared read-only, so documents can run in
parallel threads.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .band_scanner import BandScanner
from .config import BATCH
from .exceptions import BandExtractError, DocumentOpenError, ExtractionError
from .models import ResultRecord, RuleSet, ScanConfig
from .region_extractor import PdfplumberRegionExtractor
from .rule_engine import RuleEngine
from .text_cleaner import clean_text

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Records for the documents that were processed, and why the others were skipped"""

    records: List[ResultRecord] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


class DocumentProcessor:
    """Extract rule fields from PDF documents"""

    def __init__(
        self,
        rules: RuleSet,
        cleaner: Optional[Callable[[str], str]] = None,
        scan_config: Optional[ScanConfig] = None,
        region_extractor=None
    ):
        """
        Initialize document processor

        Args:
            rules: Validated rule set
            cleaner: Text cleanup function (default: clean_text)
            scan_config: Band geometry (default: ScanConfig())
            region_extractor: Region text provider (default: pdfplumber)
        """
        self.rules = rules
        self.cleaner = cleaner or clean_text
        self.scan_config = scan_config or ScanConfig()
        self.region_extractor = region_extractor or PdfplumberRegionExtractor()
        self.engine = RuleEngine(rules, first_match_wins=self.scan_config.first_match_wins)

    def process(self, path) -> ResultRecord:
        """
        Extract fields from one document

        Args:
            path: Path to a PDF file

        Returns:
            Finalized ResultRecord (unresolved fields are '')

        Raises:
            DocumentOpenError: the document cannot be opened
            ExtractionError: text extraction failed part way through
        """
        path = str(path)
        scanner = BandScanner(self.region_extractor, self.scan_config, self.cleaner)

        with self.region_extractor.open_document(path) as document:
            record = ResultRecord(path, self.rules.names)
            pages = self.region_extractor.pages(document)

            for page_number, page in enumerate(pages, start=1):
                if record.is_complete:
                    logger.debug(f"All fields resolved, skipping pages {page_number}-{len(pages)} of {Path(path).name}")
                    break

                resolved = [name for name, value in record.fields.items() if value]
                values = self.engine.resolve(scanner.scan(page, page_number), skip=resolved)
                updated = record.merge(values)
                if updated:
                    logger.debug(f"{Path(path).name} page {page_number}: resolved {', '.join(updated)}")

        if record.unresolved:
            logger.info(f"{Path(path).name}: unresolved {', '.join(record.unresolved)}")
        return record.finalize()

    def _process_safely(self, path) -> Tuple[Optional[ResultRecord], Optional[str]]:
        try:
            return self.process(path), None
        except DocumentOpenError as e:
            logger.error(f"Skipping {path}: {e}")
            return None, str(e)
        except ExtractionError as e:
            logger.error(f"Extraction failed for {path}: {e}")
            return None, str(e)
        except Exception as e:
            logger.error(f"Error processing {path}: {e}", exc_info=True)
            return None, f"{type(e).__name__}: {e}"

    def process_batch(
        self,
        paths: Iterable,
        use_threads: bool = BATCH['use_threads'],
        max_workers: int = BATCH['max_workers']
    ) -> BatchResult:
        """
        Process several documents; a failing document never stops the others

        Args:
            paths: PDF paths
            use_threads: Process documents in a ThreadPoolExecutor
            max_workers: Thread pool size

        Returns:
            BatchResult with records in input order and failures keyed by path

        Raises:
            BandExtractError: max_workers is below 1
        """
        if max_workers < 1:
            raise BandExtractError(f"max_workers must be >= 1, got {max_workers}", 'batch')

        paths = [str(p) for p in paths]
        outcomes: Dict[int, Tuple[Optional[ResultRecord], Optional[str]]] = {}

        if use_threads and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = {executor.submit(self._process_safely, path): index for index, path in enumerate(paths)}
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()
        else:
            for index, path in enumerate(paths):
                outcomes[index] = self._process_safely(path)

        result = BatchResult()
        for index, path in enumerate(paths):
            record, error = outcomes[index]
            if record is not None:
                result.records.append(record)
            else:
                result.failures[path] = error

        logger.info(f"Processed {len(result.records)}/{len(paths)} document(s), {len(result.failures)} skipped")
        return result

    def process_paths(self, paths: Iterable, **kwargs) -> List[ResultRecord]:
        """One ResultRecord per document that could be processed"""
        return self.process_batch(paths, **kwargs).records
