"""
Shared pipeline state: aggregated content statistics, the faulty file list,
and the discovered/confirmed phases of extension metadata.
"""

import copy
import logging
import threading
from typing import Dict, Iterable, List, Mapping

from base_classes import (
    Extension, ExtensionContentInfo, ExtensionMetadata, FaultyFileRecord, FileStats
)
from .discovery import file_extension

logger = logging.getLogger(__name__)


class ContentAggregator:
    """
    Per-extension content totals, mutated by the worker threads.

    The key set is seeded once from the active catalog and never changes,
    so each extension can be guarded by its own lock.
    """

    def __init__(self, extensions: Mapping[str, Extension]):
        self._content: Dict[str, ExtensionContentInfo] = {
            name: ExtensionContentInfo.from_extension(ext) for name, ext in extensions.items()
        }
        self._locks: Dict[str, threading.Lock] = {name: threading.Lock() for name in extensions}
        self._merged: Dict[str, int] = {name: 0 for name in extensions}

    def merge(self, extension_name: str, stats: FileStats):
        """Fold one file's statistics into its extension's totals"""
        with self._locks[extension_name]:
            self._content[extension_name].add_file_stats(stats)
            self._merged[extension_name] += 1

    @property
    def files_merged(self) -> int:
        return sum(self._merged.values())

    def merged_for(self, extension_name: str) -> int:
        return self._merged[extension_name]

    def snapshot(self) -> Dict[str, ExtensionContentInfo]:
        """Independent copy of the current totals"""
        result = {}
        for name, info in self._content.items():
            with self._locks[name]:
                result[name] = copy.deepcopy(info)
        return result


class FaultyFiles:
    """Lock-guarded list of files that failed classification"""

    def __init__(self):
        self._records: List[FaultyFileRecord] = []
        self._lock = threading.Lock()

    def add(self, record: FaultyFileRecord):
        with self._lock:
            self._records.append(record)

    def records(self) -> List[FaultyFileRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def confirm_metadata(discovered: Mapping[str, ExtensionMetadata],
                     faulty_records: Iterable[FaultyFileRecord]) -> Dict[str, ExtensionMetadata]:
    """
    Confirmed metadata = discovered metadata minus every faulty file.

    Returns a new map; the discovered counters are left as they were.
    """
    confirmed = {name: ExtensionMetadata(files=m.files, bytes=m.bytes) for name, m in discovered.items()}
    for record in faulty_records:
        extension = file_extension(record.path)
        if extension in confirmed:
            confirmed[extension].remove_file_meta(record.size)
        else:
            logger.warning(f"Faulty file {record.path} has no discovered extension entry")
    return confirmed
