"""
Base Classes for Codebase Line Counter
======================================

Contains the core data structures shared by the walker, the workers,
the lexical classifier and the report formatter.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple


@dataclass(frozen=True)
class Keyword:
    """A counted keyword group: every alias counts toward descriptive_name"""
    descriptive_name: str
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Extension:
    """Lexical grammar of one supported file extension"""
    name: str
    string_symbols: Tuple[str, ...] = ()
    comment_symbol: Optional[str] = None
    multiline_comment_start_symbol: Optional[str] = None
    multiline_comment_end_symbol: Optional[str] = None
    keywords: Tuple[Keyword, ...] = ()
    # Delimiters whose strings are allowed to span lines (e.g. """ or `)
    multiline_string_symbols: Tuple[str, ...] = ()
    escape_symbol: Optional[str] = '\\'
    # Complete tokens scanned as code, e.g. Rust char literals such as '"'
    literal_tokens: Tuple[str, ...] = ()

    def supports_multiline_comments(self) -> bool:
        return (self.multiline_comment_start_symbol is not None
                and self.multiline_comment_end_symbol is not None)


def _seed_keyword_map(keywords) -> Dict[str, int]:
    return {k.descriptive_name: 0 for k in keywords}


@dataclass
class FileStats:
    """Per-file accumulator, owned by the worker that classifies the file"""
    lines: int = 0
    code_lines: int = 0
    keyword_occurrences: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def for_extension(cls, extension: Extension) -> 'FileStats':
        return cls(keyword_occurrences=_seed_keyword_map(extension.keywords))

    def incr_lines(self):
        self.lines += 1

    def incr_code_lines(self):
        self.code_lines += 1

    def incr_keyword(self, keyword_name: str):
        self.keyword_occurrences[keyword_name] += 1


@dataclass
class ExtensionContentInfo:
    """Per-extension content totals summed over every classified file"""
    lines: int = 0
    code_lines: int = 0
    keyword_occurrences: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_extension(cls, extension: Extension) -> 'ExtensionContentInfo':
        return cls(keyword_occurrences=_seed_keyword_map(extension.keywords))

    @classmethod
    def dummy(cls, lines: int) -> 'ExtensionContentInfo':
        """Keyword-less entry, used for the aggregated "others" bucket"""
        return cls(lines=lines)

    @property
    def extra_lines(self) -> int:
        return self.lines - self.code_lines

    def add_file_stats(self, stats: FileStats):
        self.lines += stats.lines
        self.code_lines += stats.code_lines
        for name, count in stats.keyword_occurrences.items():
            self.keyword_occurrences[name] += count

    def add_content_info(self, other: 'ExtensionContentInfo'):
        self.lines += other.lines
        self.code_lines += other.code_lines
        for name, count in other.keyword_occurrences.items():
            self.keyword_occurrences[name] = self.keyword_occurrences.get(name, 0) + count


@dataclass
class ExtensionMetadata:
    """Discovery counters for one extension (files seen, cumulative bytes)"""
    files: int = 0
    bytes: int = 0

    def add_file_meta(self, size: int):
        self.files += 1
        self.bytes += size

    def remove_file_meta(self, size: int):
        self.files -= 1
        self.bytes -= size


@dataclass(frozen=True)
class FaultyFileRecord:
    """A relevant file that could not be read or decoded"""
    path: str
    error: str
    size: int


@dataclass(frozen=True)
class WorkItem:
    """A discovered file waiting for classification"""
    path: str
    extension: str
    size: int


@dataclass(frozen=True)
class Metrics:
    """Throughput of a run, only produced when parsing took over a second"""
    files_per_sec: int
    lines_per_sec: int


@dataclass
class RunResult:
    """Final output of a run, handed over to the report formatter"""
    content_info: Dict[str, ExtensionContentInfo]
    metadata: Dict[str, ExtensionMetadata]
    faulty_files: List[FaultyFileRecord] = field(default_factory=list)
    total_files: int = 0
    relevant_files: int = 0
    elapsed_ms: float = 0.0
    metrics: Optional[Metrics] = None
    peak_memory: int = 0

    @property
    def confirmed_files(self) -> int:
        return sum(m.files for m in self.metadata.values())

    @property
    def total_lines(self) -> int:
        return sum(c.lines for c in self.content_info.values())
