"""
Line counting pipeline modules.
"""

# Import pipeline stages
from .stages.aggregation import ContentAggregator, FaultyFiles
from .stages.discovery import DirectoryWalker
from .stages.formatting import ReportFormatter
from .workers.parallel_processor import ParallelProcessor, WorkChannel

__all__ = [
    'ContentAggregator',
    'FaultyFiles',
    'DirectoryWalker',
    'ReportFormatter',
    'ParallelProcessor',
    'WorkChannel',
]
