#!/usr/bin/env python3
"""
Rule Loader - Load field rules from versioned YAML files

Rule file format:

    version: '1.0'
    rules:
      - name: Total
        pattern: '\\btotal\\b'
        flags: IGNORECASE
        extractor: amount_after_label

Rules keep their file order; that order is the evaluation order inside a band.
Every pattern is compiled and every extractor resolved when the file is
loaded, so a broken rule fails before any document is opened.
"""

import hashlib
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import RULES
from .exceptions import RuleConfigError
from .extractors import resolve_extractor
from .models import Rule, RuleSet

logger = logging.getLogger(__name__)

_FLAG_NAMES = {
    'IGNORECASE': re.IGNORECASE,
    'MULTILINE': re.MULTILINE,
    'DOTALL': re.DOTALL,
}


def parse_flags(flags_value: Any, rule_name: Optional[str] = None) -> int:
    """
    Convert YAML flags ('IGNORECASE', 'IGNORECASE|DOTALL' or a list) to re flags
    """
    if not flags_value:
        return 0
    if isinstance(flags_value, str):
        names = [part.strip() for part in re.split(r'[|,\s]+', flags_value) if part.strip()]
    else:
        names = [str(part).strip() for part in flags_value]

    flags = 0
    for name in names:
        flag = _FLAG_NAMES.get(name.upper())
        if flag is None:
            raise RuleConfigError(f"unknown regex flag {name!r}", rule_name=rule_name)
        flags |= flag
    return flags


def build_rule_set(specs: List[Dict[str, Any]], version: Optional[str] = None) -> RuleSet:
    """
    Build a validated RuleSet from rule dictionaries

    Args:
        specs: [{'name', 'pattern', 'flags'?, 'extractor'?}, ...]
        version: Rule set version label

    Raises:
        RuleConfigError: on the first invalid rule
    """
    rules = []
    for index, spec in enumerate(specs):
        if not isinstance(spec, dict):
            raise RuleConfigError(f"rule #{index + 1} must be a mapping, got {type(spec).__name__}")
        name = spec.get('name')
        if not name:
            raise RuleConfigError(f"rule #{index + 1} has no name")

        extractor_name = spec.get('extractor')
        extractor = resolve_extractor(extractor_name, rule_name=name) if extractor_name else None

        rules.append(Rule.compile(
            name=name,
            pattern=spec.get('pattern'),
            flags=parse_flags(spec.get('flags'), rule_name=name),
            extractor=extractor,
            extractor_name=extractor_name,
        ))

    if not rules:
        raise RuleConfigError("rule set is empty")
    return RuleSet(rules, version=version)


class RuleLoader:
    """Load and cache YAML rule files"""

    def __init__(self, rules_file: Optional[Path] = None, enable_hot_reload: Optional[bool] = None):
        """
        Initialize rule loader

        Args:
            rules_file: Rule YAML file (default: BAND_EXTRACT_RULES_FILE env var,
                        then the packaged default_rules.yaml)
            enable_hot_reload: Reload when the file checksum changes. None reads
                               BAND_EXTRACT_HOT_RELOAD (default: off)
        """
        if rules_file is None:
            rules_file = os.environ.get(RULES['rules_file_env']) or RULES['default_file']
        if enable_hot_reload is None:
            enable_hot_reload = os.environ.get(RULES['hot_reload_env'], '0') == '1'

        self.rules_file = Path(rules_file)
        self._enable_hot_reload = enable_hot_reload
        self._file_checksum: Optional[str] = None
        self._rule_set: Optional[RuleSet] = None
        self._file_read_count = 0

    def _calculate_file_checksum(self, file_path: Path) -> str:
        """Calculate MD5 checksum for a file"""
        with open(file_path, 'rb') as f:
            return hashlib.md5(f.read()).hexdigest()

    def _should_reload(self) -> bool:
        if self._rule_set is None:
            return True
        if not self._enable_hot_reload:
            return False

        current_checksum = self._calculate_file_checksum(self.rules_file)
        if current_checksum != self._file_checksum:
            logger.debug(f"Rule file {self.rules_file.name} modified, reloading...")
            return True
        return False

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a YAML file directly"""
        if not file_path.is_file():
            raise RuleConfigError(f"rule file not found: {file_path}")
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                self._file_read_count += 1
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuleConfigError(f"cannot parse rule file {file_path}", original_error=e)
        if not isinstance(data, dict):
            raise RuleConfigError(f"rule file {file_path} must contain a mapping")
        return data

    def load(self) -> RuleSet:
        """
        Load the rule set, reusing the cached copy when possible

        Raises:
            RuleConfigError: file missing, unparsable, or containing an invalid rule
        """
        if not self._should_reload():
            return self._rule_set

        data = self._load_yaml_file(self.rules_file)
        specs = data.get('rules')
        if not isinstance(specs, list):
            raise RuleConfigError(f"rule file {self.rules_file} has no 'rules' list")

        version = data.get('version')
        rule_set = build_rule_set(specs, version=str(version) if version is not None else None)

        self._rule_set = rule_set
        if self._enable_hot_reload:
            self._file_checksum = self._calculate_file_checksum(self.rules_file)
        logger.info(f"Loaded {len(rule_set)} rules from {self.rules_file.name} (version {rule_set.version})")
        return rule_set

    def clear_cache(self):
        """Forget the cached rule set"""
        logger.debug("Clearing rules cache")
        self._rule_set = None
        self._file_checksum = None

    def get_file_read_count(self) -> int:
        return self._file_read_count

    def reset_file_read_count(self):
        self._file_read_count = 0
