"""
File Discovery
==============

Walks the directory tree once, records discovery metadata per extension
and pushes every relevant file onto the work channel while the workers
are already classifying.
"""

import fnmatch
import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from base_classes import ExtensionMetadata, WorkItem
from pipeline_configs import PipelineConfig, DEFAULT_EXCLUDE_PATTERNS

logger = logging.getLogger(__name__)


def file_extension(path: Union[str, Path]) -> Optional[str]:
    """
    Lower-cased text after the last dot of the file name.

    Names without a dot, ending with a dot, or made of a leading dot and
    a name (".bashrc") have no extension.
    """
    name = os.path.basename(str(path))
    stem, dot, ext = name.rpartition('.')
    if not dot or not ext or not stem.strip('.'):
        return None
    return ext.lower()


@dataclass
class DiscoveryResult:
    """Outcome of one walk"""
    total_files: int = 0
    relevant_files: int = 0
    metadata: Dict[str, ExtensionMetadata] = field(default_factory=dict)


class DirectoryWalker:
    """
    Single producer of the pipeline.

    The walker is the only writer of the discovered metadata, which is
    therefore not locked. Filesystem errors (permission denied, entries
    vanishing mid-walk, dangling symlinks) are skipped without being
    reported as faulty files.
    """

    def __init__(self,
                 extensions: Iterable[str],
                 exclude_patterns: Optional[List[str]] = None,
                 include_hidden: bool = False,
                 follow_symlinks: bool = False):
        self.extensions = frozenset(extensions)
        self.exclude_patterns = list(DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns)
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.skipped_entries = 0

    @classmethod
    def from_config(cls, extensions: Iterable[str], config: PipelineConfig) -> 'DirectoryWalker':
        return cls(
            extensions,
            exclude_patterns=config.exclude_patterns,
            include_hidden=config.include_hidden,
            follow_symlinks=config.follow_symlinks,
        )

    def _is_excluded(self, name: str) -> bool:
        if not self.include_hidden and name.startswith('.'):
            return True
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.exclude_patterns)

    def _on_walk_error(self, error: OSError):
        self.skipped_entries += 1
        logger.debug(f"Skipping unreadable directory {error.filename}: {error.strerror}")

    def _unvisited(self, dirpath: str, dirnames: Iterable[str], visited: Set[Tuple[int, int]]) -> List[str]:
        """Directories whose (device, inode) identity was not walked yet"""
        kept = []
        for name in dirnames:
            path = os.path.join(dirpath, name)
            try:
                st = os.stat(path)
            except OSError as e:
                self.skipped_entries += 1
                logger.debug(f"Skipping {path}: {e}")
                continue
            identity = (st.st_dev, st.st_ino)
            if identity in visited:
                logger.debug(f"Skipping already walked directory {path}")
                continue
            visited.add(identity)
            kept.append(name)
        return kept

    def walk(self, root: Union[str, Path], channel) -> DiscoveryResult:
        """
        Walk root, pushing a WorkItem per relevant file onto channel.

        When symlinks are followed every directory is entered at most once,
        so link cycles and links into already walked subtrees never count
        a file twice.

        The channel is closed exactly once when the walk ends, also when
        it ends with an exception, so consumers always terminate.
        """
        result = DiscoveryResult(metadata={name: ExtensionMetadata() for name in self.extensions})
        visited: Set[Tuple[int, int]] = set()
        try:
            if self.follow_symlinks:
                root_stat = os.stat(root)
                visited.add((root_stat.st_dev, root_stat.st_ino))

            for dirpath, dirnames, filenames in os.walk(root, topdown=True,
                                                        onerror=self._on_walk_error,
                                                        followlinks=self.follow_symlinks):
                # Pruning in place keeps os.walk out of excluded directories
                kept = sorted(d for d in dirnames if not self._is_excluded(d))
                if self.follow_symlinks:
                    kept = self._unvisited(dirpath, kept, visited)
                dirnames[:] = kept

                for filename in sorted(filenames):
                    if self._is_excluded(filename):
                        continue
                    path = os.path.join(dirpath, filename)
                    try:
                        st = os.stat(path)
                    except OSError as e:
                        self.skipped_entries += 1
                        logger.debug(f"Skipping {path}: {e}")
                        continue
                    if not stat.S_ISREG(st.st_mode):
                        continue

                    result.total_files += 1
                    extension = file_extension(filename)
                    if extension not in self.extensions:
                        continue

                    result.metadata[extension].add_file_meta(st.st_size)
                    result.relevant_files += 1
                    channel.put(WorkItem(path=path, extension=extension, size=st.st_size))
        finally:
            channel.close()

        logger.info(f"Discovery finished: {result.total_files} files found, "
                    f"{result.relevant_files} of interest, {self.skipped_entries} entries skipped")
        return result
