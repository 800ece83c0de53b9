#!/usr/bin/env python3
"""
Integration tests for the line counting pipeline.
"""

import io
import json
import logging
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import patch

import pipeline_monitoring
from base_classes import Extension, Keyword
from line_count_pipeline import LineCountPipeline, count_lines
from lexers.registry import ExtensionCatalog
from pipeline.stages.formatting import ReportFormatter
from pipeline_configs import ConfigPresets, PipelineConfig
from pipeline_errors import AllFilesFaultyError, ConfigurationError, NoRelevantFilesError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    tmp_dir = Path(tempfile.mkdtemp())
    yield tmp_dir
    shutil.rmtree(tmp_dir, ignore_errors=True)


@pytest.fixture
def catalog():
    """Built-in grammars only"""
    with patch('lexers.registry.entry_points', return_value=[]):
        catalog = ExtensionCatalog()
        catalog.load()
    return catalog


@pytest.fixture
def sample_project(temp_dir):
    """Create a small mixed-language project."""
    (temp_dir / "app.py").write_text('''"""
Module docstring with def inside
"""
import os


class Greeter:
    def greet(self, name):
        # say hello
        return f"Hello, {name}!"
''')
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "lib.rs").write_text('''/* crate docs
 * struct in a comment
 */
struct Point { x: i32 }

fn main() {
    let s = "fn in a string";
}
''')
    (temp_dir / "src" / "util.py").write_text("def helper():\n    return 1\n")
    (temp_dir / "notes.md").write_text("# notes\n")
    (temp_dir / ".git").mkdir()
    (temp_dir / ".git" / "hook.py").write_text("def hidden():\n    pass\n")
    return temp_dir


class TestPipelineIntegration:
    """Integration tests for the main pipeline."""

    def test_basic_pipeline_flow(self, sample_project, catalog):
        config = ConfigPresets.default(sample_project)
        result = LineCountPipeline(config, catalog).run()

        assert result.total_files == 4
        assert result.relevant_files == 3
        assert result.faulty_files == []

        py = result.content_info['py']
        assert py.lines == 10 + 2
        assert py.code_lines == 4 + 2
        assert py.keyword_occurrences == {'classes': 1, 'functions': 2, 'imports': 1}
        assert result.metadata['py'].files == 2

        rs = result.content_info['rs']
        assert rs.lines == 8
        assert rs.code_lines == 4
        assert rs.keyword_occurrences['structs'] == 1
        assert rs.keyword_occurrences['functions'] == 1

        assert result.confirmed_files == 3
        assert result.total_lines == 20
        assert result.elapsed_ms >= 0
        # A run this small never reaches the metrics threshold
        assert result.metrics is None
        assert result.peak_memory > 0

    def test_stage_summary_is_logged(self, sample_project, catalog, caplog):
        with caplog.at_level(logging.INFO, logger='line_count_pipeline'):
            LineCountPipeline(ConfigPresets.default(sample_project), catalog).run()

        summary = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Stage summary")]
        assert len(summary) == 1
        assert "'parsing'" in summary[0]
        assert "memory_peak" in summary[0]

    def test_thread_count_does_not_change_results(self, sample_project, catalog):
        single = LineCountPipeline(ConfigPresets.single_threaded(sample_project), catalog).run()
        many = LineCountPipeline(PipelineConfig(root_path=sample_project, threads=8), catalog).run()

        assert single.content_info == many.content_info
        assert single.metadata == many.metadata

    def test_extension_filter(self, sample_project, catalog):
        config = PipelineConfig(root_path=sample_project, extensions_of_interest=['rs'])
        result = LineCountPipeline(config, catalog).run()

        assert set(result.content_info) == {'rs'}
        assert result.relevant_files == 1
        assert result.total_files == 4

    def test_faulty_files_are_excluded_from_stats(self, sample_project, catalog):
        (sample_project / "broken.py").write_bytes(b"x = 1\n\xff\xfe\n")
        config = ConfigPresets.default(sample_project)

        result = LineCountPipeline(config, catalog).run()

        assert len(result.faulty_files) == 1
        assert result.faulty_files[0].path.endswith("broken.py")
        assert result.relevant_files == 4
        assert result.metadata['py'].files == 2
        assert result.content_info['py'].lines == 12

    def test_no_relevant_files(self, sample_project, catalog):
        config = PipelineConfig(root_path=sample_project, extensions_of_interest=['go'])
        with pytest.raises(NoRelevantFilesError) as exc_info:
            LineCountPipeline(config, catalog).run()
        assert exc_info.value.activated_extensions == ['go']

    def test_no_active_extensions(self, sample_project, catalog):
        config = PipelineConfig(root_path=sample_project, extensions_of_interest=['unknown'])
        with pytest.raises(NoRelevantFilesError):
            LineCountPipeline(config, catalog).run()

    def test_all_files_faulty(self, temp_dir, catalog):
        for name in ["a.py", "b.py", "c.rs"]:
            (temp_dir / name).write_bytes(b"\xc3\x28 invalid")

        with pytest.raises(AllFilesFaultyError) as exc_info:
            LineCountPipeline(ConfigPresets.default(temp_dir), catalog).run()

        assert exc_info.value.faulty_count == 3
        assert len(exc_info.value.faulty_files) == 3

    def test_root_must_be_a_directory(self, temp_dir, catalog):
        file_path = temp_dir / "file.py"
        file_path.write_text("x = 1\n")
        with pytest.raises(ConfigurationError):
            LineCountPipeline(ConfigPresets.default(file_path), catalog).run()

    def test_plain_mapping_catalog(self, temp_dir):
        grammar = Extension(name='cfg', comment_symbol=';', keywords=(Keyword('sections', ('[',)),))
        (temp_dir / "app.cfg").write_text("; comment\n[main]\nkey = value\n")

        result = LineCountPipeline(ConfigPresets.default(temp_dir), {'cfg': grammar}).run()

        assert result.content_info['cfg'].lines == 3
        assert result.content_info['cfg'].code_lines == 2
        assert result.content_info['cfg'].keyword_occurrences['sections'] == 1

    def test_metrics_for_slow_runs(self, sample_project, catalog):
        def slow_run_metrics(elapsed_ms, files, lines):
            return pipeline_monitoring.compute_metrics(elapsed_ms + 2000, files, lines)

        with patch('line_count_pipeline.compute_metrics', side_effect=slow_run_metrics):
            result = LineCountPipeline(ConfigPresets.default(sample_project), catalog).run()

        assert result.metrics is not None
        assert result.metrics.files_per_sec >= 1


class TestCountLines:
    """End to end through the formatter"""

    def test_text_output(self, sample_project, catalog):
        stream = io.StringIO()
        result = count_lines(ConfigPresets.default(sample_project), catalog,
                             formatter=ReportFormatter('text'), stream=stream)

        output = stream.getvalue()
        assert "4 files found. 3 of interest." in output
        assert ".py" in output and ".rs" in output
        assert "Overview." in output
        assert result.confirmed_files == 3

    def test_json_output(self, sample_project, catalog):
        stream = io.StringIO()
        count_lines(ConfigPresets.default(sample_project), catalog,
                    formatter=ReportFormatter('json'), stream=stream)

        document = json.loads(stream.getvalue())
        assert document['total']['files'] == 3
        assert document['total']['lines'] == 20
        assert document['extensions']['rs']['code_lines'] == 4
        assert document['peak_memory_bytes'] > 0

    def test_catalog_file(self, temp_dir):
        (temp_dir / "main.zig").write_text("// comment\nfn main() void {}\n")
        table = temp_dir / "grammars.json"
        table.write_text(json.dumps({'zig': {
            'string_symbols': ['"'],
            'comment_symbol': '//',
            'keywords': [{'descriptive_name': 'functions', 'aliases': ['fn']}],
        }}))
        config = PipelineConfig(root_path=temp_dir, catalog_file=table, extensions_of_interest=['zig'])

        with patch('lexers.registry.entry_points', return_value=[]):
            result = count_lines(config)

        assert result.content_info['zig'].code_lines == 1
        assert result.content_info['zig'].keyword_occurrences['functions'] == 1
