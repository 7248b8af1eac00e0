#!/usr/bin/env python3
"""
Exceptions raised by the band extraction pipeline

Unresolved fields are never errors - they come back as empty strings.
"""

from typing import Optional


class BandExtractError(Exception):
    """Base exception for band extraction errors"""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.component = component
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.component:
            msg += f" (component: {self.component})"
        if self.original_error:
            msg += f" [original: {type(self.original_error).__name__}: {self.original_error}]"
        return msg


class DocumentOpenError(BandExtractError):
    """Document does not exist, is not a PDF, or cannot be parsed"""

    def __init__(self, path, original_error: Optional[Exception] = None):
        self.path = str(path)
        super().__init__(f"Cannot open document: {self.path}", 'document', original_error)


class ExtractionError(BandExtractError):
    """Text extraction failed for a page region"""
    pass


class RuleConfigError(BandExtractError):
    """Rule set is malformed (bad regex, duplicate name, unknown extractor)"""

    def __init__(self, message: str, rule_name: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        self.rule_name = rule_name
        if rule_name:
            message = f"Rule '{rule_name}': {message}"
        super().__init__(message, 'rules', original_error)


class ScanConfigError(BandExtractError):
    """Scan geometry is invalid (non-positive band height or width)"""

    def __init__(self, message: str):
        super().__init__(message, 'scan_config')
