#!/usr/bin/env python3
"""
Unit tests for the command line entry point.
"""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

import count_lines
from pipeline_configs import DEFAULT_EXCLUDE_PATTERNS


@pytest.fixture
def project(tmp_path):
    (tmp_path / "main.py").write_text("def main():\n    pass\n\n# done\n")
    (tmp_path / "lib.rs").write_text("fn lib() {}\n")
    (tmp_path / "README").write_text("hello\n")
    return tmp_path


class TestArguments:

    def test_defaults(self):
        args = count_lines.parse_arguments([])
        assert args.path == '.'
        assert args.threads is None
        assert args.extensions == []
        assert args.format == 'text'
        assert not args.show_faulty_files

    def test_build_config(self, tmp_path):
        args = count_lines.parse_arguments([str(tmp_path), '-t', '2', '-e', '.PY', 'rs', '--json',
                                            '--include-hidden', '--show-faulty-files'])
        config = count_lines.build_config(args)

        assert config.root_path == tmp_path.resolve()
        assert config.threads == 2
        assert config.extensions_of_interest == ['py', 'rs']
        assert config.output_format == 'json'
        assert config.include_hidden
        assert config.show_faulty_files
        assert config.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS

    def test_exclude_replaces_defaults(self, tmp_path):
        args = count_lines.parse_arguments([str(tmp_path), '--exclude', 'vendor', '*.min.js'])
        assert count_lines.build_config(args).exclude_patterns == ['vendor', '*.min.js']


class TestMain:

    def test_text_report(self, project, capsys):
        assert count_lines.main([str(project), '-t', '2']) == 0

        out = capsys.readouterr().out
        assert "3 files found. 2 of interest." in out
        assert "ok" in out
        assert ".py" in out
        assert ".rs" in out
        assert "Overview." in out

    def test_json_report(self, project, capsys):
        assert count_lines.main([str(project), '--json', '-e', 'py']) == 0

        document = json.loads(capsys.readouterr().out)
        assert list(document['extensions']) == ['py']
        assert document['extensions']['py']['lines'] == 4
        assert document['extensions']['py']['code_lines'] == 2
        assert document['extensions']['py']['keywords']['functions'] == 1

    def test_no_relevant_files(self, project, capsys):
        assert count_lines.main([str(project), '-e', 'go']) == 1
        err = capsys.readouterr().err
        assert "No relevant files found in the given directory." in err
        assert "(Activated extensions: go)" in err

    def test_all_files_faulty(self, tmp_path, capsys):
        (tmp_path / "bad.py").write_bytes(b"\xff\xfe\xfd")

        assert count_lines.main([str(tmp_path), '--show-faulty-files']) == 1

        captured = capsys.readouterr()
        assert "1 faulty files detected." in captured.out
        assert str(tmp_path / "bad.py") in captured.out
        assert "None of the files were able to be parsed" in captured.err

    def test_missing_directory(self, tmp_path, capsys):
        assert count_lines.main([str(tmp_path / "nope")]) == 1
        assert "Invalid root path" in capsys.readouterr().err

    def test_invalid_threads(self, project, capsys):
        assert count_lines.main([str(project), '-t', '0']) == 1
        assert "threads must be positive" in capsys.readouterr().err

    def test_bad_catalog(self, project, capsys):
        catalog = project / "grammars.json"
        catalog.write_text("{broken")
        assert count_lines.main([str(project), '--catalog', str(catalog)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_keyboard_interrupt(self, project, capsys):
        with patch('count_lines.count_lines', side_effect=KeyboardInterrupt):
            assert count_lines.main([str(project)]) == 1
        assert "Interrupted by user" in capsys.readouterr().err
