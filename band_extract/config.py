#!/usr/bin/env python3
"""
Configuration for the receipt band extractor
Edit these values to tune scanning for your receipts
"""

from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

# Band Geometry (points; 72 points = 1 inch)
# band_height: explicit band height, or None to derive it from the page:
#   ratio_height_base * page_height / page_width
#   (A4 portrait with base 10 -> ~14pt, about one printed line)
# traverse_width: window width of the horizontal tax/VAT sweep
# per_page_height: False keeps the band height of the first page for the
#   whole document; True recomputes it for every page
# first_match_wins: only the first matching rule is evaluated per band
SCAN_DEFAULTS = {
    'band_height': None,
    'ratio_height_base': 10.0,
    'traverse_width': 60.0,
    'per_page_height': False,
    'first_match_wins': True,
}

# Rule Files
# Rules are versioned YAML files (see rules/default_rules.yaml)
#
# Rules file priority:
# 1. --rules command line option
# 2. Environment variable: BAND_EXTRACT_RULES_FILE
# 3. default_file below
#
# Hot reload (checksum-based) is OFF unless BAND_EXTRACT_HOT_RELOAD=1
RULES = {
    'default_file': PACKAGE_DIR / 'rules' / 'default_rules.yaml',
    'rules_file_env': 'BAND_EXTRACT_RULES_FILE',
    'hot_reload_env': 'BAND_EXTRACT_HOT_RELOAD',
}

# Batch Processing
BATCH = {
    'supported_formats': ['.pdf'],
    'use_threads': False,              # Process documents in parallel
    'max_workers': 4,                  # Thread pool size when use_threads is on
}

# Logging Settings
LOGGING = {
    'level': 'INFO',                   # DEBUG shows every band's cleaned text
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'log_dir': 'logs',
    'log_file': 'band_extract.log',
}
