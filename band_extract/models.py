#!/usr/bin/env python3
"""
Data model for band extraction

Rule / RuleSet - named regex patterns with optional extractor functions
BandContext    - one horizontal slice of a page after extraction and cleanup
ResultRecord   - extracted field values for one document
ScanConfig     - band geometry settings
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from .config import SCAN_DEFAULTS
from .exceptions import RuleConfigError, ScanConfigError


@dataclass(frozen=True)
class Rule:
    """
    A named field rule.

    Without an extractor the field value is the substring matched by pattern.
    With an extractor the value is whatever extractor(match, context) returns;
    an empty string means "not found in this band".
    """

    name: str
    pattern: 're.Pattern'
    extractor: Optional[Callable[['re.Match', 'BandContext'], str]] = None
    extractor_name: Optional[str] = None

    @classmethod
    def compile(
        cls,
        name: str,
        pattern: str,
        flags: int = 0,
        extractor: Optional[Callable] = None,
        extractor_name: Optional[str] = None
    ) -> 'Rule':
        """
        Build a rule from a pattern string

        Raises:
            RuleConfigError: name is empty or pattern is not a valid regex
        """
        if not name or not str(name).strip():
            raise RuleConfigError("rule name must not be empty")
        if not pattern:
            raise RuleConfigError("pattern must not be empty", rule_name=name)
        try:
            compiled = re.compile(pattern, flags)
        except re.error as e:
            raise RuleConfigError(f"invalid pattern {pattern!r}: {e}", rule_name=name, original_error=e)
        return cls(name=str(name), pattern=compiled, extractor=extractor, extractor_name=extractor_name)

    def search(self, text: str) -> Optional['re.Match']:
        return self.pattern.search(text)

    def evaluate(self, match: 're.Match', context: 'BandContext') -> str:
        if self.extractor is None:
            return match.group(0)
        value = self.extractor(match, context)
        return value or ''


class RuleSet:
    """Ordered collection of rules with unique names"""

    def __init__(self, rules: List[Rule], version: Optional[str] = None):
        seen = set()
        for rule in rules:
            if rule.name in seen:
                raise RuleConfigError("duplicate rule name", rule_name=rule.name)
            seen.add(rule.name)
        self._rules = tuple(rules)
        self.version = version

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, name: str) -> Rule:
        for rule in self._rules:
            if rule.name == name:
                return rule
        raise KeyError(name)

    @property
    def names(self) -> List[str]:
        return [rule.name for rule in self._rules]

    def __repr__(self) -> str:
        return f"RuleSet(version={self.version!r}, rules={self.names})"


@dataclass(frozen=True)
class BandContext:
    """
    One band of a page.

    Coordinates are PDF user space: origin at the bottom-left corner of the
    page, y grows upward. The band covers (x, y) to (x + width, y + height).
    region_extractor and cleaner let extractor functions re-query the page
    at other coordinates (see BandContext.read).
    """

    page: Any
    x: float
    y: float
    width: float
    height: float
    text: str
    band_height: float
    traverse_width: float
    region_extractor: Any = None
    cleaner: Optional[Callable[[str], str]] = None
    page_number: int = 1

    def read(self, x: float, y: float, width: float, height: Optional[float] = None) -> str:
        """
        Extract and clean the text of another region on the same page

        Returns:
            Cleaned text, or '' when the region is blank
        """
        if self.region_extractor is None:
            return ''
        raw = self.region_extractor.extract_text(
            self.page, x, y, width, self.band_height if height is None else height
        )
        if not raw or not raw.strip():
            return ''
        return self.cleaner(raw) if self.cleaner else raw.strip()


class ResultRecord:
    """Field values extracted from one document"""

    def __init__(self, path: str, rule_names: List[str]):
        self.path = str(path)
        self._fields: Dict[str, str] = {name: '' for name in rule_names}
        self._finalized = False

    @property
    def fields(self) -> Mapping[str, str]:
        if self._finalized:
            return self._fields
        return MappingProxyType(self._fields)

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def unresolved(self) -> List[str]:
        return [name for name, value in self._fields.items() if not value]

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def merge(self, values: Mapping[str, str]) -> List[str]:
        """
        Merge newly resolved values, never overwriting a resolved field

        Args:
            values: rule name -> value (empty values are ignored)

        Returns:
            Names of the fields that were set by this call
        """
        if self._finalized:
            raise RuntimeError(f"ResultRecord for {self.path} is finalized")
        updated = []
        for name, value in values.items():
            if name not in self._fields or not value or self._fields[name]:
                continue
            self._fields[name] = value
            updated.append(name)
        return updated

    def finalize(self) -> 'ResultRecord':
        if not self._finalized:
            self._fields = MappingProxyType(dict(self._fields))
            self._finalized = True
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'fields': dict(self._fields)}

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResultRecord):
            return NotImplemented
        return self.path == other.path and dict(self._fields) == dict(other._fields)

    def __repr__(self) -> str:
        return f"ResultRecord(path={self.path!r}, fields={dict(self._fields)!r})"


@dataclass(frozen=True)
class ScanConfig:
    """
    Band geometry.

    band_height: explicit band height in points; None derives it from the
        page as ratio_height_base * page_height / page_width
    traverse_width: step width of the horizontal sweep
    per_page_height: recompute the derived band height for every page
        instead of keeping the value from the first page of the document
    first_match_wins: only the first matching rule is evaluated per band
    """

    band_height: Optional[float] = SCAN_DEFAULTS['band_height']
    ratio_height_base: float = SCAN_DEFAULTS['ratio_height_base']
    traverse_width: float = SCAN_DEFAULTS['traverse_width']
    per_page_height: bool = SCAN_DEFAULTS['per_page_height']
    first_match_wins: bool = SCAN_DEFAULTS['first_match_wins']

    def __post_init__(self):
        if self.band_height is not None and self.band_height <= 0:
            raise ScanConfigError(f"band_height must be > 0, got {self.band_height}")
        if self.ratio_height_base <= 0:
            raise ScanConfigError(f"ratio_height_base must be > 0, got {self.ratio_height_base}")
        if self.traverse_width <= 0:
            raise ScanConfigError(f"traverse_width must be > 0, got {self.traverse_width}")

    def derive_band_height(self, page_width: float, page_height: float) -> float:
        """Band height for a page of the given size"""
        if self.band_height is not None:
            return float(self.band_height)
        if page_width <= 0 or page_height <= 0:
            raise ScanConfigError(f"page size must be positive, got {page_width}x{page_height}")
        return self.ratio_height_base * page_height / page_width
