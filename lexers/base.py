"""
Base lexer mixins and utilities shared by the line classifier.
"""

import re
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from base_classes import Keyword

logger = logging.getLogger(__name__)


class TokenizerMixin:
    """Whole-token keyword matching over code regions."""

    @staticmethod
    def _alias_pattern(alias: str) -> str:
        # Only guard the sides of the alias that are identifier characters,
        # so symbolic aliases such as '&&' still match between operands
        pattern = re.escape(alias)
        if re.match(r'\w', alias[0]):
            pattern = r'(?<!\w)' + pattern
        if re.match(r'\w', alias[-1]):
            pattern = pattern + r'(?!\w)'
        return pattern

    @classmethod
    def build_keyword_pattern(cls, keywords: Iterable[Keyword]) -> Tuple[Optional[re.Pattern], Dict[str, str]]:
        """
        Compile every alias of every keyword group into one pattern.

        Returns:
            The compiled pattern (None when there are no aliases) and the
            alias -> descriptive name lookup used on each match.
        """
        alias_map: Dict[str, str] = {}
        for keyword in keywords:
            for alias in keyword.aliases:
                if not alias:
                    continue
                if alias in alias_map and alias_map[alias] != keyword.descriptive_name:
                    logger.warning(f"Alias '{alias}' already counts toward "
                                   f"'{alias_map[alias]}', ignoring it for '{keyword.descriptive_name}'")
                    continue
                alias_map[alias] = keyword.descriptive_name

        if not alias_map:
            return None, alias_map

        ordered = sorted(alias_map, key=len, reverse=True)
        pattern = re.compile('|'.join(cls._alias_pattern(a) for a in ordered))
        return pattern, alias_map


class MarkerMixin:
    """Opening-marker lookup for comment and string boundaries."""

    @staticmethod
    def build_marker_pattern(markers: List[str]) -> Optional[re.Pattern]:
        """
        Compile markers into one alternation. Alternatives are tried in
        list order at each position, so the list order is the precedence.
        """
        if not markers:
            return None
        return re.compile('|'.join(re.escape(m) for m in markers))

    @staticmethod
    def longest_first(markers: Iterable[str]) -> List[str]:
        return sorted((m for m in markers if m), key=len, reverse=True)


def split_lines(text: str) -> Iterator[str]:
    """
    Yield the lines of text without their terminators. A final newline
    does not start an extra line and an empty text has no lines.
    """
    if not text:
        return
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    for line in lines:
        yield line[:-1] if line.endswith('\r') else line
