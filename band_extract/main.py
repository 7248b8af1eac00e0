#!/usr/bin/env python3
"""
Band Extract Main Entry Point

Extracts Date, Time, Total and Vat (or whatever the rule file defines) from
receipt PDFs and prints one JSON record per document.

Usage:
    band-extract receipts/ extra.pdf --output results.json
    band-extract receipt.pdf --band-height 12 --traverse-width 80 --log-level DEBUG
"""

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import BATCH, LOGGING, SCAN_DEFAULTS
from .document_processor import BatchResult, DocumentProcessor
from .exceptions import BandExtractError, RuleConfigError
from .logger import setup_logger
from .models import ScanConfig
from .rule_loader import RuleLoader

logger = logging.getLogger(__name__)


def collect_pdf_paths(inputs: Iterable) -> List[Path]:
    """
    Expand input paths: directories become their PDF files (recursive, sorted)

    Paths that do not exist are kept so they are reported as unopenable.
    """
    paths = []
    supported = {ext.lower() for ext in BATCH['supported_formats']}
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            found = sorted(p for p in path.rglob('*') if p.is_file() and p.suffix.lower() in supported)
            logger.debug(f"Found {len(found)} PDF file(s) in {path}")
            paths.extend(found)
        else:
            paths.append(path)
    return paths


def load_cleaner(spec: str) -> Callable[[str], str]:
    """Import a cleanup function given as 'package.module:function'"""
    module_name, sep, func_name = spec.partition(':')
    if not sep or not module_name or not func_name:
        raise BandExtractError(f"Cleaner must be given as module:function, got {spec!r}", 'cli')
    try:
        func = getattr(importlib.import_module(module_name), func_name)
    except (ImportError, AttributeError) as e:
        raise BandExtractError(f"Cannot import cleaner {spec!r}", 'cli', e)
    if not callable(func):
        raise BandExtractError(f"Cleaner {spec!r} is not callable", 'cli')
    return func


def process_files(
    inputs: Iterable,
    rules_file: Optional[Path] = None,
    scan_config: Optional[ScanConfig] = None,
    cleaner: Optional[Callable[[str], str]] = None,
    use_threads: bool = BATCH['use_threads'],
    max_workers: int = BATCH['max_workers']
) -> BatchResult:
    """
    Main processing function

    Args:
        inputs: PDF files and/or directories
        rules_file: Rule YAML file (default rules when None)
        scan_config: Band geometry
        cleaner: Text cleanup function
        use_threads: Process documents in parallel
        max_workers: Thread pool size

    Returns:
        BatchResult with one record per processed document

    Raises:
        RuleConfigError: the rule file is invalid (before any document is opened)
    """
    rules = RuleLoader(rules_file).load()
    processor = DocumentProcessor(rules, cleaner=cleaner, scan_config=scan_config)

    paths = collect_pdf_paths(inputs)
    if not paths:
        logger.warning("No PDF files to process")
        return BatchResult()

    return processor.process_batch(paths, use_threads=use_threads, max_workers=max_workers)


def positive_int(value: str) -> int:
    """argparse type for options that must be a whole number >= 1"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='band-extract',
        description='Extract date, time, total and tax fields from receipt PDFs by scanning horizontal bands',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        'paths',
        nargs='+',
        help='PDF files or directories containing PDF files'
    )
    parser.add_argument(
        '--rules',
        type=str,
        default=None,
        help='Rule YAML file (default: $BAND_EXTRACT_RULES_FILE or the packaged default rules)'
    )
    parser.add_argument(
        '--band-height',
        type=float,
        default=SCAN_DEFAULTS['band_height'],
        help='Explicit band height in points (default: derived from the page aspect ratio)'
    )
    parser.add_argument(
        '--ratio-height-base',
        type=float,
        default=SCAN_DEFAULTS['ratio_height_base'],
        help=f"Band height = base * page height / page width (default: {SCAN_DEFAULTS['ratio_height_base']})"
    )
    parser.add_argument(
        '--traverse-width',
        type=float,
        default=SCAN_DEFAULTS['traverse_width'],
        help=f"Window width of the tax/VAT column sweep (default: {SCAN_DEFAULTS['traverse_width']})"
    )
    parser.add_argument(
        '--per-page-height',
        action='store_true',
        help='Recompute the derived band height for every page'
    )
    parser.add_argument(
        '--all-rules-per-band',
        action='store_true',
        help='Try every unresolved rule on each band instead of stopping at the first match'
    )
    parser.add_argument(
        '--cleaner',
        type=str,
        default=None,
        help='Replacement cleanup function as module:function'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Write JSON results to this file (default: stdout)'
    )
    parser.add_argument(
        '--use-threads',
        action='store_true',
        help='Process documents in parallel using ThreadPoolExecutor (default: False)'
    )
    parser.add_argument(
        '--max-workers',
        type=positive_int,
        default=BATCH['max_workers'],
        help=f"Thread pool size (default: {BATCH['max_workers']})"
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=LOGGING['level'],
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help=f"Logging level (default: {LOGGING['level']})"
    )
    parser.add_argument(
        '--log-dir',
        type=str,
        default=LOGGING['log_dir'],
        help=f"Directory for the log file (default: {LOGGING['log_dir']})"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for band-extract"""
    args = build_parser().parse_args(argv)
    setup_logger(log_level=args.log_level, log_dir=Path(args.log_dir))

    try:
        scan_config = ScanConfig(
            band_height=args.band_height,
            ratio_height_base=args.ratio_height_base,
            traverse_width=args.traverse_width,
            per_page_height=args.per_page_height,
            first_match_wins=not args.all_rules_per_band,
        )
        cleaner = load_cleaner(args.cleaner) if args.cleaner else None
        result = process_files(
            args.paths,
            rules_file=Path(args.rules) if args.rules else None,
            scan_config=scan_config,
            cleaner=cleaner,
            use_threads=args.use_threads,
            max_workers=args.max_workers,
        )
    except RuleConfigError as e:
        logger.error(f"Invalid rules: {e}")
        return 2
    except BandExtractError as e:
        logger.error(str(e))
        return 2

    output = [record.to_dict() for record in result.records]
    if args.output:
        output_file = Path(args.output)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)
        logger.info(f"Wrote {len(output)} record(s) to {output_file}")
    else:
        json.dump(output, sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write('\n')

    if result.failures and not result.records:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
