"""
Report Formatter
================

Render the results of a run as a text report or as JSON.
"""

import json
import logging
import math
from typing import Any, Dict, List, Sequence, Tuple

from base_classes import (
    ExtensionContentInfo, ExtensionMetadata, FaultyFileRecord, RunResult
)

logger = logging.getLogger(__name__)

# Width of the [-|||...|-] bar of the overview section
NUM_OF_VERTICALS = 50
# Extensions shown individually in the overview, the rest become "others"
OVERVIEW_SLOTS = 4
OTHERS = 'others'
BAR_SYMBOLS = ('|', '#', '=', ':')
KEYWORD_LINE_OFFSET = 20


def with_separators(value: int) -> str:
    return f"{value:,}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def size_and_unit(value: int, suffix: str) -> Tuple[float, str]:
    if value > 1_000_000:
        return value / 1_000_000, f"MBs {suffix}"
    if value > 1000:
        return value / 1000, f"KBs {suffix}"
    return float(value), f"Bytes {suffix}"


def size_text(total_bytes: int, files: int) -> str:
    size, unit = size_and_unit(total_bytes, "total")
    average, average_unit = size_and_unit(total_bytes // files if files else 0, "average")
    return f"{size:.1f} {unit} - {average:.1f} {average_unit}"


def memory_text(value: int) -> str:
    size, unit = size_and_unit(value, "")
    return f"{size:.1f} {unit.strip()}"


def code_percentage(info: ExtensionContentInfo) -> float:
    return info.code_lines / info.lines * 100 if info.lines else 0.0


def get_percentages(numbers: Sequence[int]) -> List[float]:
    """
    Percentages rounded to one decimal. The last entry takes the remainder
    so the list always sums to 100 (or 0 when everything is zero).
    """
    total = sum(numbers)
    if total == 0:
        return [0.0 for _ in numbers]

    percentages = []
    running = 0.0
    for index, number in enumerate(numbers):
        if index == len(numbers) - 1:
            if running > 99.89:
                percentages.append(0.0)
            else:
                percentages.append(_round_half_up((100 - running) * 10) / 10)
        else:
            canonical = _round_half_up(number / total * 1000) / 10
            running += canonical
            percentages.append(canonical)
    return percentages


def get_num_of_verticals(percentages: Sequence[float]) -> List[int]:
    """Bar columns per entry: two percent per column, at least one for any nonzero share"""
    verticals = []
    for percent in percentages:
        if percent == 0:
            verticals.append(0)
        else:
            verticals.append(max(1, _round_half_up(percent / 2)))

    total = sum(verticals)
    if total != NUM_OF_VERTICALS and total > 0:
        normalize_verticals(verticals, total)
    return verticals


def normalize_verticals(verticals: List[int], total: int):
    """
    Adjust column counts in place so they sum to NUM_OF_VERTICALS.

    The largest entries absorb the difference; entries tied for the
    largest value are adjusted together so near-equal shares never end up
    more than one column apart.
    """
    def by_value_desc(order: List[int]):
        order.sort(key=lambda i: verticals[i], reverse=True)

    order = list(range(len(verticals)))
    by_value_desc(order)

    is_over = total > NUM_OF_VERTICALS
    step = -1 if is_over else 1
    difference = abs(total - NUM_OF_VERTICALS)

    max_value = verticals[order[0]]
    tied = [pos for pos, i in enumerate(order) if verticals[i] == max_value]
    if len(tied) > 1:
        for pos in tied:
            if difference == 0:
                break
            verticals[order[pos]] += step
            difference -= 1

    if difference == 0:
        return

    verticals[order[0]] += step
    if is_over:
        by_value_desc(order)

    for _ in range(difference - 1):
        first, second = order[0], order[1]
        if is_over:
            if verticals[first] > verticals[second] + 3:
                verticals[first] -= 1
            else:
                verticals[second] -= 1
                if len(order) > 2:
                    by_value_desc(order)
        else:
            if verticals[first] > verticals[second] + 5:
                verticals[second] += 1
                if len(order) > 2:
                    by_value_desc(order)
            else:
                verticals[first] += 1


def remove_empty_extensions(content_info: Dict[str, ExtensionContentInfo],
                            metadata: Dict[str, ExtensionMetadata]):
    """Drop extensions without any confirmed file from both maps"""
    for name in [n for n, m in metadata.items() if m.files == 0]:
        del metadata[name]
        content_info.pop(name, None)


def sort_by_relevance(metadata: Dict[str, ExtensionMetadata]) -> List[str]:
    return sorted(metadata, key=lambda n: metadata[n].files * 10 + metadata[n].bytes, reverse=True)


def keyword_totals(content_info: Dict[str, ExtensionContentInfo]) -> Dict[str, int]:
    """Keyword counts summed over every extension, zero counts left out"""
    total = sum_content_info(content_info)
    return {name: count for name, count in total.keyword_occurrences.items() if count}


def sum_content_info(content_info: Dict[str, ExtensionContentInfo]) -> ExtensionContentInfo:
    total = ExtensionContentInfo()
    for info in content_info.values():
        total.add_content_info(info)
    return total


def retain_most_relevant(sorted_names: List[str],
                         content_info: Dict[str, ExtensionContentInfo],
                         metadata: Dict[str, ExtensionMetadata]) -> List[str]:
    """
    Keep the three most relevant extensions and fold the rest into an
    "others" entry. Returns the new ordered name list.
    """
    kept = sorted_names[:OVERVIEW_SLOTS - 1]
    rest = sorted_names[OVERVIEW_SLOTS - 1:]

    others_info = ExtensionContentInfo.dummy(sum(content_info[n].lines for n in rest))
    others_meta = ExtensionMetadata(files=sum(metadata[n].files for n in rest),
                                    bytes=sum(metadata[n].bytes for n in rest))
    for name in rest:
        del content_info[name]
        del metadata[name]
    content_info[OTHERS] = others_info
    metadata[OTHERS] = others_meta
    return kept + [OTHERS]


def format_faulty_files(records: Sequence[FaultyFileRecord], show_details: bool) -> str:
    if not records:
        return "ok\n"
    lines = [f"{len(records)} faulty files detected. They will be ignored in stat calculation."]
    if show_details:
        for record in records:
            lines.append(f"-- Error: {record.error}\n   for file: {record.path}\n")
    else:
        lines.append("Run with '--show-faulty-files' to get detailed info.")
    return '\n'.join(lines) + '\n'


class ReportFormatter:
    """Format a RunResult for display"""

    def __init__(self, output_format: str = 'text', show_faulty_files: bool = False):
        self.format_templates = {
            'text': self._format_text,
            'json': self._format_json,
        }
        if output_format not in self.format_templates:
            raise ValueError(f"Invalid output_format: {output_format}")
        self.output_format = output_format
        self.show_faulty_files = show_faulty_files

    def render(self, result: RunResult) -> str:
        """Render the result; the maps of the result are left untouched"""
        content_info = {n: ExtensionContentInfo(i.lines, i.code_lines, dict(i.keyword_occurrences))
                        for n, i in result.content_info.items()}
        metadata = {n: ExtensionMetadata(m.files, m.bytes) for n, m in result.metadata.items()}
        remove_empty_extensions(content_info, metadata)
        return self.format_templates[self.output_format](result, content_info, metadata)

    # Text output

    def _format_text(self, result: RunResult,
                     content_info: Dict[str, ExtensionContentInfo],
                     metadata: Dict[str, ExtensionMetadata]) -> str:
        sorted_names = sort_by_relevance(metadata)
        sections = [
            f"{with_separators(result.total_files)} files found. "
            f"{with_separators(result.relevant_files)} of interest.\n",
            format_faulty_files(result.faulty_files, self.show_faulty_files),
            self._format_details(sorted_names, content_info, metadata),
        ]

        if len(metadata) > 1:
            sections.append(self._format_sum(content_info, metadata))
            sections.append(self._format_overview(sorted_names, content_info, metadata))

        if result.metrics is not None:
            sections.append(f"Performance: {with_separators(result.metrics.files_per_sec)} files/sec - "
                            f"{with_separators(result.metrics.lines_per_sec)} lines/sec\n")
        if result.peak_memory:
            sections.append(f"Peak memory: {memory_text(result.peak_memory)}\n")

        return '\n'.join(sections)

    @staticmethod
    def _keywords_line(keyword_occurrences: Dict[str, int], indent: int) -> str:
        if not keyword_occurrences:
            return ""
        parts = [f"{name}: {with_separators(count)}" for name, count in keyword_occurrences.items()]
        return " " * indent + " , ".join(parts)

    @staticmethod
    def _lines_text(lines: int, code_lines: int, percentage: float) -> str:
        return (f"lines {with_separators(lines)} {{{with_separators(code_lines)} code "
                f"({percentage:.2f}%) + {with_separators(lines - code_lines)} extra}}")

    def _format_details(self, sorted_names: List[str],
                        content_info: Dict[str, ExtensionContentInfo],
                        metadata: Dict[str, ExtensionMetadata]) -> str:
        if not sorted_names:
            return "Details.\n\nNo files counted.\n"
        files_width = max(len(with_separators(m.files)) for m in metadata.values())
        name_width = max(7, max(len(n) for n in sorted_names))

        rows = []
        for name in sorted_names:
            info = content_info[name]
            meta = metadata[name]
            title = f".{name:<{name_width}} {with_separators(meta.files):>{files_width}} files  -> "
            rows.append((title, self._lines_text(info.lines, info.code_lines, code_percentage(info)),
                         size_text(meta.bytes, meta.files), info.keyword_occurrences))

        lines_width = max(len(r[1]) for r in rows)
        blocks = ["Details.\n"]
        for title, lines_text, sizes, keywords in rows:
            block = f"{title}{lines_text:<{lines_width}}  |  {sizes}"
            keywords_line = self._keywords_line(keywords, KEYWORD_LINE_OFFSET + files_width)
            if keywords_line:
                block += "\n" + keywords_line
            blocks.append(block + "\n")
        return '\n'.join(blocks)

    def _format_sum(self, content_info: Dict[str, ExtensionContentInfo],
                    metadata: Dict[str, ExtensionMetadata]) -> str:
        total_files = sum(m.files for m in metadata.values())
        total_bytes = sum(m.bytes for m in metadata.values())
        total = sum_content_info(content_info)
        total_lines, total_code = total.lines, total.code_lines
        percentage = code_percentage(total)
        files_width = max(len(with_separators(m.files)) for m in metadata.values())

        info = (f"total   {with_separators(total_files)} files  -> "
                f"{self._lines_text(total_lines, total_code, percentage)}  |  "
                f"{size_text(total_bytes, total_files)}")
        output = ["-" * len(info), info]
        keywords_line = self._keywords_line(keyword_totals(content_info), KEYWORD_LINE_OFFSET + files_width)
        if keywords_line:
            output.append(keywords_line)
        return '\n'.join(output) + "\n"

    def _format_overview(self, sorted_names: List[str],
                         content_info: Dict[str, ExtensionContentInfo],
                         metadata: Dict[str, ExtensionMetadata]) -> str:
        names = list(sorted_names)
        if len(names) > OVERVIEW_SLOTS:
            names = retain_most_relevant(names, content_info, metadata)

        rows = [
            ("Files:", get_percentages([metadata[n].files for n in names])),
            ("Lines:", get_percentages([content_info[n].lines for n in names])),
            ("Size :", get_percentages([metadata[n].bytes for n in names])),
        ]
        output = ["Overview.\n"]
        for prefix, percentages in rows:
            output.append(self._overview_line(prefix, percentages, get_num_of_verticals(percentages), names))
            output.append("")
        return '\n'.join(output)

    @staticmethod
    def _overview_line(prefix: str, percentages: List[float], verticals: List[int], names: List[str]) -> str:
        shares = " - ".join(f"{percent:>5.1f}% {name} ({BAR_SYMBOLS[i]})"
                            for i, (percent, name) in enumerate(zip(percentages, names)))
        bar = "".join(BAR_SYMBOLS[i] * count for i, count in enumerate(verticals))
        return f"{prefix}    {shares}    [-{bar}-]"

    # JSON output

    def _format_json(self, result: RunResult,
                     content_info: Dict[str, ExtensionContentInfo],
                     metadata: Dict[str, ExtensionMetadata]) -> str:
        extensions: Dict[str, Any] = {}
        for name in sort_by_relevance(metadata):
            info = content_info[name]
            meta = metadata[name]
            extensions[name] = {
                'files': meta.files,
                'bytes': meta.bytes,
                'lines': info.lines,
                'code_lines': info.code_lines,
                'extra_lines': info.extra_lines,
                'keywords': dict(info.keyword_occurrences),
            }

        document: Dict[str, Any] = {
            'total_files': result.total_files,
            'relevant_files': result.relevant_files,
            'extensions': extensions,
            'total': {
                'files': sum(m.files for m in metadata.values()),
                'bytes': sum(m.bytes for m in metadata.values()),
                'lines': sum(c.lines for c in content_info.values()),
                'code_lines': sum(c.code_lines for c in content_info.values()),
                'keywords': keyword_totals(content_info),
            },
            'faulty_files': [
                {'path': r.path, 'error': r.error, 'size': r.size} for r in result.faulty_files
            ],
            'elapsed_ms': round(result.elapsed_ms, 1),
            'peak_memory_bytes': result.peak_memory,
            'metrics': None,
        }
        if result.metrics is not None:
            document['metrics'] = {
                'files_per_sec': result.metrics.files_per_sec,
                'lines_per_sec': result.metrics.lines_per_sec,
            }
        return json.dumps(document, indent=2) + "\n"
