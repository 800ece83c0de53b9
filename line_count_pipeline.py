"""
Codebase Line Counting Pipeline
===============================

Coordinates a run: the directory walk produces work items while a pool
of worker threads classifies them, then the discovery metadata is
corrected for faulty files and the results are handed to the formatter.
"""

import logging
import sys
from typing import Mapping, Optional, TextIO, Union

from tqdm import tqdm

from base_classes import Extension, RunResult, WorkItem
from lexers.line_classifier import build_classifiers
from lexers.registry import ExtensionCatalog, load_catalog
from pipeline.stages.aggregation import ContentAggregator, FaultyFiles, confirm_metadata
from pipeline.stages.discovery import DirectoryWalker
from pipeline.stages.formatting import ReportFormatter
from pipeline.workers.parallel_processor import ParallelProcessor
from pipeline_configs import PipelineConfig, normalize_extension_name
from pipeline_errors import AllFilesFaultyError, ConfigurationError, NoRelevantFilesError
from pipeline_monitoring import PipelineMonitor, compute_metrics

logger = logging.getLogger(__name__)


class LineCountPipeline:
    """Runs one line count over a directory tree"""

    def __init__(self,
                 config: PipelineConfig,
                 catalog: Union[ExtensionCatalog, Mapping[str, Extension]]):
        self.config = config
        self.extensions = self._active_extensions(catalog, config)
        self.monitor = PipelineMonitor()

    @staticmethod
    def _active_extensions(catalog, config: PipelineConfig) -> Mapping[str, Extension]:
        if isinstance(catalog, ExtensionCatalog):
            return catalog.restricted_to(config.extensions_of_interest)
        allowed = set(config.extensions_of_interest)
        return {normalize_extension_name(name): ext for name, ext in catalog.items()
                if not allowed or normalize_extension_name(name) in allowed}

    def run(self) -> RunResult:
        """
        Walk, classify and aggregate.

        Returns:
            RunResult with confirmed metadata and aggregated content info

        Raises:
            ConfigurationError: root path is not a directory
            NoRelevantFilesError: no file matched an active extension
            AllFilesFaultyError: every relevant file failed classification
        """
        root = self.config.root_path
        if not root.is_dir():
            raise ConfigurationError(f"Invalid root path: {root}")
        if not self.extensions:
            raise NoRelevantFilesError(self.config.activated_extensions())

        logger.info(f"Analyzing {root} with {self.config.threads} threads "
                    f"and {len(self.extensions)} active extensions")

        aggregator = ContentAggregator(self.extensions)
        faulty_files = FaultyFiles()
        walker = DirectoryWalker.from_config(self.extensions.keys(), self.config)

        with tqdm(desc="Parsing files", unit="files", disable=not self.config.show_progress) as progress_bar:
            def on_processed(item: WorkItem):
                progress_bar.update(1)
                self.monitor.update_stage_progress('parsing', items=1, bytes_count=item.size)

            with ParallelProcessor(build_classifiers(self.extensions), aggregator, faulty_files,
                                   num_workers=self.config.threads,
                                   progress_callback=on_processed) as processor:
                processor.start()
                with self.monitor.stage('parsing'):
                    discovery = walker.walk(root, processor.channel)
                    processor.join()

        elapsed_ms = self.monitor.stage_metrics['parsing'].duration_ms

        if discovery.relevant_files == 0:
            raise NoRelevantFilesError(self.config.activated_extensions())

        faulty_records = faulty_files.records()
        if len(faulty_records) == discovery.relevant_files:
            raise AllFilesFaultyError(len(faulty_records), faulty_records)
        if faulty_records:
            logger.warning(f"{len(faulty_records)} faulty files detected, they are ignored in stat calculation")

        confirmed = confirm_metadata(discovery.metadata, faulty_records)
        content_info = aggregator.snapshot()

        result = RunResult(
            content_info=content_info,
            metadata=confirmed,
            faulty_files=faulty_records,
            total_files=discovery.total_files,
            relevant_files=discovery.relevant_files,
            elapsed_ms=elapsed_ms,
            peak_memory=self.monitor.peak_memory,
        )
        result.metrics = compute_metrics(elapsed_ms, result.confirmed_files, result.total_lines)

        logger.info(f"Counted {result.total_lines} lines in {result.confirmed_files} files "
                    f"in {elapsed_ms:.0f}ms")
        logger.info(f"Stage summary: {self.monitor.get_summary()}")
        return result


def count_lines(config: PipelineConfig,
                catalog: Optional[Union[ExtensionCatalog, Mapping[str, Extension]]] = None,
                formatter: Optional[ReportFormatter] = None,
                stream: Optional[TextIO] = None) -> RunResult:
    """
    Run the pipeline and, when a formatter is given, write its report.

    The catalog defaults to the built-in and plugin grammars plus the
    configured grammar table file.
    """
    if catalog is None:
        catalog = load_catalog(config.catalog_file)

    result = LineCountPipeline(config, catalog).run()

    if formatter is not None:
        (stream or sys.stdout).write(formatter.render(result))
    return result
