#!/usr/bin/env python3
"""
Tests for the band-extract command line
"""

import json
import logging
from unittest.mock import patch

import pytest

from band_extract.exceptions import BandExtractError
from band_extract.logger import setup_logger
from band_extract.main import build_parser, collect_pdf_paths, load_cleaner, main, process_files
from band_extract.models import ScanConfig

from fakes import FakeRegionExtractor, receipt_page


@pytest.fixture
def fake_pdfs():
    """Route document opening to in-memory receipts"""
    extractor = FakeRegionExtractor({'a.pdf': [receipt_page()], 'b.pdf': [receipt_page()]})
    with patch('band_extract.document_processor.PdfplumberRegionExtractor', return_value=extractor):
        yield extractor


def run(argv, tmp_path):
    return main(argv + ['--log-dir', str(tmp_path / 'logs')])


class TestCollectPdfPaths:

    def test_directory_expanded_recursively(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        for name in ['b.pdf', 'a.PDF', 'notes.txt', 'sub/c.pdf']:
            (tmp_path / name).write_bytes(b'')

        paths = collect_pdf_paths([tmp_path])

        assert [p.relative_to(tmp_path).as_posix() for p in paths] == ['a.PDF', 'b.pdf', 'sub/c.pdf']

    def test_files_kept_in_order(self, tmp_path):
        paths = collect_pdf_paths(['z.pdf', tmp_path / 'missing.pdf'])
        assert [p.name for p in paths] == ['z.pdf', 'missing.pdf']


class TestLoadCleaner:

    def test_import_function(self):
        cleaner = load_cleaner('band_extract.text_cleaner:clean_text')
        assert cleaner('TOTAL 12,50') == 'TOTAL 12.50'

    @pytest.mark.parametrize('spec', ['clean_text', 'band_extract.text_cleaner:', 'no_such_module:f',
                                      'band_extract.text_cleaner:missing', 'band_extract.config:LOGGING'])
    def test_bad_cleaner(self, spec):
        with pytest.raises(BandExtractError):
            load_cleaner(spec)


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(['a.pdf'])
        assert args.band_height is None
        assert args.traverse_width == 60.0
        assert not args.all_rules_per_band

    def test_requires_paths(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    @pytest.mark.parametrize('value', ['0', '-2', 'two'])
    def test_max_workers_must_be_positive(self, value):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(['a.pdf', '--max-workers', value])
        assert exc_info.value.code == 2


class TestMain:

    def test_json_to_stdout(self, fake_pdfs, tmp_path, capsys):
        assert run(['a.pdf', 'b.pdf', '--band-height', '10'], tmp_path) == 0

        output = json.loads(capsys.readouterr().out)
        assert [item['path'] for item in output] == ['a.pdf', 'b.pdf']
        assert output[0]['fields'] == {'Date': '15/03/2024', 'Time': '12:34', 'Total': '12.50', 'Vat': '2.10'}

    def test_output_file(self, fake_pdfs, tmp_path):
        out = tmp_path / 'out' / 'results.json'

        assert run(['a.pdf', '--band-height', '10', '-o', str(out)], tmp_path) == 0

        assert json.loads(out.read_text(encoding='utf-8'))[0]['fields']['Total'] == '12.50'

    def test_partial_failure_still_succeeds(self, fake_pdfs, tmp_path, capsys):
        assert run(['a.pdf', 'broken.pdf', '--band-height', '10'], tmp_path) == 0
        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_all_documents_failed(self, tmp_path, capsys):
        assert run([str(tmp_path / 'missing.pdf')], tmp_path) == 1
        assert json.loads(capsys.readouterr().out) == []

    def test_invalid_rules_file(self, tmp_path):
        rules_file = tmp_path / 'rules.yaml'
        rules_file.write_text("rules:\n  - name: Broken\n    pattern: '(unclosed'\n", encoding='utf-8')

        assert run(['a.pdf', '--rules', str(rules_file)], tmp_path) == 2

    def test_invalid_scan_config(self, tmp_path):
        assert run(['a.pdf', '--traverse-width', '0'], tmp_path) == 2

    def test_bad_cleaner_argument(self, tmp_path):
        assert run(['a.pdf', '--cleaner', 'nowhere'], tmp_path) == 2

    def test_zero_workers_with_threads(self, fake_pdfs, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            run(['a.pdf', 'b.pdf', '--use-threads', '--max-workers', '0'], tmp_path)
        assert exc_info.value.code == 2
        assert fake_pdfs.opened == []

    def test_log_file_written(self, tmp_path, capsys):
        run([str(tmp_path / 'missing.pdf')], tmp_path)
        assert (tmp_path / 'logs' / 'band_extract.log').exists()


class TestProcessFiles:

    def test_empty_directory(self, tmp_path):
        result = process_files([tmp_path])
        assert result.records == []
        assert result.failures == {}

    def test_scan_config_passed_through(self, fake_pdfs):
        result = process_files(['a.pdf'], scan_config=ScanConfig(band_height=10))
        assert result.records[0].fields['Vat'] == '2.10'

    def test_invalid_worker_count(self, fake_pdfs):
        with pytest.raises(BandExtractError):
            process_files(['a.pdf', 'b.pdf'], use_threads=True, max_workers=0)


class TestSetupLogger:

    def test_file_and_stderr_handlers(self, tmp_path):
        logger = setup_logger(log_level='DEBUG', log_dir=tmp_path / 'logs')

        root = logging.getLogger()
        assert logger.name == 'band_extract.logger'
        assert root.level == logging.DEBUG
        assert {type(handler) for handler in root.handlers} == {logging.FileHandler, logging.StreamHandler}
        assert (tmp_path / 'logs' / 'band_extract.log').exists()
