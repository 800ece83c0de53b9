"""
Lexical classification for the codebase line counter.

- ExtensionCatalog holds the grammar of every supported extension
  (built-in table, entry point plugins, JSON grammar tables)
- LineClassifier counts lines, code lines and keywords of one file
"""

from .base import TokenizerMixin, MarkerMixin, split_lines
from .line_classifier import (
    LineClassifier,
    Mode,
    ScanState,
    build_classifiers,
    classify_file,
    classify_text,
)
from .registry import (
    ExtensionCatalog,
    ExtensionInfo,
    extension_from_dict,
    load_catalog,
)
from .languages import builtin_catalog, builtin_extensions

__all__ = [
    # Mixins and helpers
    'TokenizerMixin',
    'MarkerMixin',
    'split_lines',

    # Classifier
    'LineClassifier',
    'Mode',
    'ScanState',
    'build_classifiers',
    'classify_file',
    'classify_text',

    # Catalog
    'ExtensionCatalog',
    'ExtensionInfo',
    'extension_from_dict',
    'load_catalog',
    'builtin_catalog',
    'builtin_extensions',
]
