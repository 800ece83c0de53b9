"""
Line Classifier
===============

Single-pass lexical scanner counting total lines, code lines and keyword
occurrences of one file. The scan is a fold over the file's lines with an
explicit state (mode + pending closing delimiter) that persists across
line boundaries; nothing is shared between files, so any number of files
can be classified in parallel.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from base_classes import Extension, FileStats
from pipeline_errors import FileClassificationError
from .base import TokenizerMixin, MarkerMixin, split_lines

logger = logging.getLogger(__name__)


class Mode(Enum):
    """Scanner modes"""
    NORMAL = "normal"
    IN_STRING = "in_string"
    IN_LINE_COMMENT = "in_line_comment"
    IN_BLOCK_COMMENT = "in_block_comment"


@dataclass(frozen=True)
class Opener:
    """What an opening marker switches the scanner into"""
    mode: Mode
    closing: Optional[str] = None
    spans_lines: bool = False


@dataclass
class ScanState:
    """Scanner state carried from one line to the next"""
    mode: Mode = Mode.NORMAL
    closing: Optional[str] = None
    spans_lines: bool = False

    def enter(self, opener: Opener):
        self.mode = opener.mode
        self.closing = opener.closing
        self.spans_lines = opener.spans_lines

    def reset(self):
        self.mode = Mode.NORMAL
        self.closing = None
        self.spans_lines = False

    def end_line(self):
        """Line comments and single-line strings never outlive their line"""
        if self.mode is Mode.IN_LINE_COMMENT:
            self.reset()
        elif self.mode is Mode.IN_STRING and not self.spans_lines:
            self.reset()


class LineClassifier(TokenizerMixin, MarkerMixin):
    """
    Classifier bound to one Extension grammar.

    Marker precedence when several could open at the same position:
    literal tokens, block comment start, line comment, multiline string
    delimiters, then single-line string delimiters, each group longest
    first. Only markers the grammar defines take part.
    """

    def __init__(self, extension: Extension):
        self.extension = extension
        self._openers: Dict[str, Opener] = {}
        ordered: List[str] = []

        def add(marker: str, opener: Opener):
            if marker and marker not in self._openers:
                self._openers[marker] = opener
                ordered.append(marker)

        # Literal tokens outrank every other marker and stay in NORMAL mode
        for token in self.longest_first(extension.literal_tokens):
            add(token, Opener(Mode.NORMAL))
        if extension.supports_multiline_comments():
            add(extension.multiline_comment_start_symbol,
                Opener(Mode.IN_BLOCK_COMMENT, extension.multiline_comment_end_symbol, True))
        if extension.comment_symbol:
            add(extension.comment_symbol, Opener(Mode.IN_LINE_COMMENT))
        for symbol in self.longest_first(extension.multiline_string_symbols):
            add(symbol, Opener(Mode.IN_STRING, symbol, True))
        for symbol in self.longest_first(extension.string_symbols):
            add(symbol, Opener(Mode.IN_STRING, symbol, False))

        self._opener_pattern = self.build_marker_pattern(ordered)
        self._keyword_pattern, self._alias_map = self.build_keyword_pattern(extension.keywords)
        self._escape = extension.escape_symbol or None

    def classify(self, text: str) -> FileStats:
        """Classify already decoded file content"""
        stats = FileStats.for_extension(self.extension)
        state = ScanState()

        for line in split_lines(text):
            stats.incr_lines()
            segments = self.scan_line(line, state)
            if any(not segment.isspace() for segment in segments):
                stats.incr_code_lines()
                if self._keyword_pattern is not None:
                    self._count_keywords(segments, stats)

        return stats

    def classify_file(self, path: Union[str, Path]) -> FileStats:
        """
        Read, decode and classify a file.

        Raises:
            FileClassificationError: the file could not be read or is not
                valid UTF-8. No partial statistics are produced.
        """
        try:
            data = Path(path).read_bytes()
            text = data.decode('utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise FileClassificationError(str(path), e) from e
        return self.classify(text)

    def scan_line(self, line: str, state: ScanState) -> List[str]:
        """
        Advance state over one line.

        Returns:
            The parts of the line lying in NORMAL regions.
        """
        segments: List[str] = []
        pos = 0
        length = len(line)

        while pos < length:
            mode = state.mode
            if mode is Mode.NORMAL:
                match = self._opener_pattern.search(line, pos) if self._opener_pattern else None
                end = match.start() if match else length
                if end > pos:
                    segments.append(line[pos:end])
                if match is None:
                    break
                opener = self._openers[match.group()]
                if opener.mode is Mode.NORMAL:
                    segments.append(match.group())
                else:
                    state.enter(opener)
                pos = match.end()
            elif mode is Mode.IN_LINE_COMMENT:
                break
            elif mode is Mode.IN_BLOCK_COMMENT:
                idx = line.find(state.closing, pos)
                if idx < 0:
                    break
                pos = idx + len(state.closing)
                state.reset()
            else:
                idx = self._find_string_end(line, pos, state.closing)
                if idx < 0:
                    break
                pos = idx + len(state.closing)
                state.reset()

        state.end_line()
        return segments

    def _find_string_end(self, line: str, start: int, closing: str) -> int:
        """Index of the first unescaped closing delimiter at or after start, or -1"""
        search_from = start
        while True:
            idx = line.find(closing, search_from)
            if idx < 0 or not self._escape:
                return idx
            escapes = 0
            j = idx - 1
            while j >= start and line[j] == self._escape:
                escapes += 1
                j -= 1
            if escapes % 2 == 0:
                return idx
            search_from = idx + 1

    def _count_keywords(self, segments: List[str], stats: FileStats):
        # Segments are separated by strings or comments, which split tokens
        code = ' '.join(segments)
        for match in self._keyword_pattern.finditer(code):
            stats.incr_keyword(self._alias_map[match.group()])


def classify_text(text: str, extension: Extension) -> FileStats:
    """Convenience wrapper classifying a string with a one-off classifier"""
    return LineClassifier(extension).classify(text)


def classify_file(path: Union[str, Path], extension: Extension) -> FileStats:
    """Convenience wrapper classifying a file with a one-off classifier"""
    return LineClassifier(extension).classify_file(path)


def build_classifiers(extensions: Dict[str, Extension]) -> Dict[str, LineClassifier]:
    """One classifier per extension name, compiled once per run"""
    return {name: LineClassifier(ext) for name, ext in extensions.items()}
