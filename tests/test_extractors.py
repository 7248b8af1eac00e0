#!/usr/bin/env python3
"""
Unit tests for extractor functions, including the tax/VAT column sweep
"""

import re

import pytest

from band_extract.band_scanner import BandScanner
from band_extract.exceptions import RuleConfigError
from band_extract.extractors import (
    EXTRACTORS,
    amount_after_label,
    find_amount,
    resolve_extractor,
    tax_sweep,
)
from band_extract.models import BandContext, ScanConfig
from band_extract.text_cleaner import clean_text

from fakes import FakePage, FakeRegionExtractor, receipt_page

VAT_RE = re.compile(r'\b(?:vat|tax)\b', re.IGNORECASE)


def band_at(page, y, extractor, band_height=10.0, traverse_width=60.0):
    raw = extractor.extract_text(page, 0.0, y, page.width, band_height)
    return BandContext(
        page=page, x=0.0, y=y, width=float(page.width), height=band_height, text=clean_text(raw),
        band_height=band_height, traverse_width=traverse_width,
        region_extractor=extractor, cleaner=clean_text,
    )


class TestFindAmount:

    @pytest.mark.parametrize('text,expected', [
        ('TOTAL 12.50', '12.50'),
        ('12.50 EUR', '12.50'),
        ('15.03.2024', ''),
        ('12.500', ''),
        ('1234.56.', '1234.56'),
        ('', ''),
        ('no digits', ''),
    ])
    def test_find_amount(self, text, expected):
        assert find_amount(text) == expected

    @pytest.mark.parametrize('raw,expected', [
        ('TOTAL 1,234.50', '1234.50'),
        ('TOTAL 1.234,50', '1234.50'),
        ('TOTAL 1 234,50', '1234.50'),
        ('TOTAL 12.345.678,90', '12345678.90'),
        ('TOTAL 100.000,00', '100000.00'),
        ('TOTAL 1234,50', '1234.50'),
    ])
    def test_thousands_grouping(self, raw, expected):
        assert find_amount(clean_text(raw)) == expected

    @pytest.mark.parametrize('text', ['1.234', '1.234.5', '15.03.2024'])
    def test_grouping_without_decimals_is_not_amount(self, text):
        assert find_amount(text) == ''


class TestAmountAfterLabel:

    def test_amount_after_label(self):
        context = BandContext(None, 0, 0, 100, 10, 'Items 3.00 TOTAL 12.50', 10, 60)
        match = re.search(r'total', context.text, re.IGNORECASE)
        assert amount_after_label(match, context) == '12.50'

    def test_no_amount_after_label(self):
        context = BandContext(None, 0, 0, 100, 10, '3.00 TOTAL', 10, 60)
        match = re.search(r'total', context.text, re.IGNORECASE)
        assert amount_after_label(match, context) == ''


class TestTaxSweep:
    """Secondary horizontal sweep for tabular VAT values"""

    def test_inline_value_no_sweep(self):
        page = FakePage(200, 20, [(5, 15, 'VAT'), (40, 15, '2,10')])
        extractor = FakeRegionExtractor()
        band = band_at(page, 10, extractor)
        calls_before = len(extractor.calls)

        assert tax_sweep(VAT_RE.search(band.text), band) == '2.10'
        assert len(extractor.calls) == calls_before

    def test_value_under_header_column(self):
        extractor = FakeRegionExtractor()
        page = receipt_page()
        band = band_at(page, 50, extractor)
        assert band.text == 'Rate VAT'

        assert tax_sweep(VAT_RE.search(band.text), band) == '2.10'

        sweep_calls = extractor.calls[1:]
        assert sweep_calls == [
            (0.0, 50, 60.0, 10.0),    # Rate
            (60.0, 50, 60.0, 10.0),   # VAT
            (60.0, 40, 60.0, 10.0),   # column beneath -> 2.10
        ]

    def test_sweep_bounded_by_band_width(self):
        page = FakePage(200, 20, [(5, 15, 'VAT')])
        extractor = FakeRegionExtractor()
        band = band_at(page, 10, extractor)

        assert tax_sweep(VAT_RE.search(band.text), band) == ''

        windows = [call for call in extractor.calls[1:] if call[1] == 10]
        assert [call[0] for call in windows] == [0.0, 60.0, 120.0]
        assert all(x + width <= 200 for x, _, width, _ in windows)

    def test_header_without_value_keeps_sweeping(self):
        page = FakePage(200, 20, [
            (5, 15, 'VAT'), (70, 15, 'VAT'),
            (75, 5, '0.95'),
        ])
        extractor = FakeRegionExtractor()
        band = band_at(page, 10, extractor)

        assert tax_sweep(VAT_RE.search(band.text), band) == '0.95'

    def test_every_primary_match_sweeps_from_left_edge(self):
        page = FakePage(200, 30, [(5, 25, 'VAT'), (5, 15, 'TAX')])
        extractor = FakeRegionExtractor()

        first = band_at(page, 20, extractor)
        tax_sweep(VAT_RE.search(first.text), first)
        second = band_at(page, 10, extractor)
        start = len(extractor.calls)
        tax_sweep(VAT_RE.search(second.text), second)

        assert extractor.calls[start] == (0.0, 10, 60.0, 10.0)

    def test_sweep_from_scanner_band(self):
        extractor = FakeRegionExtractor()
        scanner = BandScanner(extractor, ScanConfig(band_height=10, traverse_width=60))
        vat_band = [band for band in scanner.scan(receipt_page()) if 'VAT' in band.text][0]

        assert tax_sweep(VAT_RE.search(vat_band.text), vat_band) == '2.10'


class TestResolveExtractor:

    def test_registry_names(self):
        assert resolve_extractor('tax_sweep') is tax_sweep
        assert set(EXTRACTORS) == {'amount_after_label', 'tax_sweep'}

    def test_module_path(self):
        assert resolve_extractor('band_extract.extractors:amount_after_label') is amount_after_label

    def test_unknown_name(self):
        with pytest.raises(RuleConfigError) as exc_info:
            resolve_extractor('nope', rule_name='Vat')
        assert "Rule 'Vat'" in str(exc_info.value)

    def test_bad_module_path(self):
        with pytest.raises(RuleConfigError):
            resolve_extractor('band_extract.extractors:missing', rule_name='Vat')
