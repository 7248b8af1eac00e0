"""
Receipt Band Extractor
Scans receipt PDFs in horizontal bands and resolves field rules (date, time,
total, tax) against the cleaned text of each band.
"""

from .band_scanner import BandScanner
from .document_processor import BatchResult, DocumentProcessor
from .exceptions import (
    BandExtractError,
    DocumentOpenError,
    ExtractionError,
    RuleConfigError,
    ScanConfigError,
)
from .extractors import EXTRACTORS, amount_after_label, tax_sweep
from .main import process_files
from .models import BandContext, ResultRecord, Rule, RuleSet, ScanConfig
from .region_extractor import PdfplumberRegionExtractor
from .rule_engine import RuleEngine
from .rule_loader import RuleLoader, build_rule_set
from .text_cleaner import clean_text

__version__ = '1.0.0'

__all__ = [
    'process_files',
    'BandScanner',
    'BatchResult',
    'DocumentProcessor',
    'BandExtractError',
    'DocumentOpenError',
    'ExtractionError',
    'RuleConfigError',
    'ScanConfigError',
    'EXTRACTORS',
    'amount_after_label',
    'tax_sweep',
    'BandContext',
    'ResultRecord',
    'Rule',
    'RuleSet',
    'ScanConfig',
    'PdfplumberRegionExtractor',
    'RuleEngine',
    'RuleLoader',
    'build_rule_set',
    'clean_text',
]
