"""
Pipeline stages for the line counter.
"""

from .discovery import DirectoryWalker, DiscoveryResult, file_extension
from .aggregation import ContentAggregator, FaultyFiles, confirm_metadata
from .formatting import ReportFormatter, format_faulty_files, with_separators

__all__ = [
    'DirectoryWalker',
    'DiscoveryResult',
    'file_extension',
    'ContentAggregator',
    'FaultyFiles',
    'confirm_metadata',
    'ReportFormatter',
    'format_faulty_files',
    'with_separators',
]
