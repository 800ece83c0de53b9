"""
Pipeline Configurations
=======================

Configuration value consumed by the line counting pipeline, plus
pre-configured settings for common scenarios.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from pipeline_errors import ConfigurationError

logger = logging.getLogger(__name__)

MAX_THREADS = 32

DEFAULT_EXCLUDE_PATTERNS = [
    '.git',
    '.hg',
    '.svn',
    'node_modules',
    '__pycache__',
    '.venv',
    'venv',
    '.tox',
    '.mypy_cache',
    '.pytest_cache',
    'dist',
    'build',
    'target',
    '*.egg-info',
]


def normalize_extension_name(name: str) -> str:
    """'.PY' and 'py' both name the 'py' extension"""
    return name.strip().lstrip('.').lower()


@dataclass
class PipelineConfig:
    """Configuration settings for a line counting run"""

    # Discovery settings
    root_path: Path = field(default_factory=Path.cwd)
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    include_hidden: bool = False
    follow_symlinks: bool = False
    extensions_of_interest: List[str] = field(default_factory=list)

    # Processing settings
    threads: Optional[int] = None
    catalog_file: Optional[Path] = None

    # Output settings
    output_format: str = 'text'
    show_faulty_files: bool = False
    show_progress: bool = False
    log_level: str = 'WARNING'

    def __post_init__(self) -> None:
        """Validate configuration parameters"""
        self.root_path = Path(self.root_path)
        if self.catalog_file is not None:
            self.catalog_file = Path(self.catalog_file)

        if self.threads is None:
            self.threads = min(os.cpu_count() or 1, MAX_THREADS)
        if self.threads <= 0:
            raise ConfigurationError("threads must be positive")
        if self.threads > MAX_THREADS:
            logger.warning(f"Capping threads at {MAX_THREADS} (requested {self.threads})")
            self.threads = MAX_THREADS

        self.extensions_of_interest = [
            normalize_extension_name(e) for e in self.extensions_of_interest if e.strip()
        ]

        if self.output_format not in ['text', 'json']:
            raise ConfigurationError(f"Invalid output_format: {self.output_format}")
        if self.log_level.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")
        self.log_level = self.log_level.upper()

    def activated_extensions(self) -> List[str]:
        return list(self.extensions_of_interest)


class ConfigPresets:
    """Pre-configured settings for common use cases"""

    @staticmethod
    def default(root_path: Path) -> PipelineConfig:
        return PipelineConfig(root_path=root_path)

    @staticmethod
    def single_threaded(root_path: Path) -> PipelineConfig:
        """
        One worker thread, useful when debugging classification of a
        specific file or when profiling.
        """
        return PipelineConfig(root_path=root_path, threads=1)

    @staticmethod
    def large_codebase(root_path: Path) -> PipelineConfig:
        """
        Optimized for large trees (>100k files)
        - All cores busy classifying
        - Progress bar enabled
        """
        return PipelineConfig(
            root_path=root_path,
            threads=MAX_THREADS,
            show_progress=True,
        )
