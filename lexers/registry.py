"""
Pluggable Extension Catalog
===========================

Registry of extension grammars used by the line classifier.
Grammars come from three sources:
1. Built-in grammar table (lexers/languages.py)
2. Entry points (setuptools plugins)
3. Grammar table files (JSON) and runtime registration
"""

import json
import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from base_classes import Extension, Keyword
from pipeline_configs import normalize_extension_name
from pipeline_errors import CatalogError
from .languages import builtin_extensions

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = 'codebase_line_counter.extensions'

_GRAMMAR_FIELDS = {
    'string_symbols', 'comment_symbol', 'multiline_comment_start_symbol',
    'multiline_comment_end_symbol', 'multiline_string_symbols',
    'escape_symbol', 'keywords', 'literal_tokens',
}


@dataclass
class ExtensionInfo:
    """A registered grammar and where it came from"""
    extension: Extension
    priority: int = 0  # Higher priority grammars override lower priority ones
    source: str = "builtin"  # "builtin", "plugin", "file", "custom"


def _string_tuple(value: Any, field_name: str, ext_name: str) -> tuple:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CatalogError(f"'{field_name}' of extension '{ext_name}' must be a list of strings")
    return tuple(value)


def _optional_string(value: Any, field_name: str, ext_name: str) -> Optional[str]:
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise CatalogError(f"'{field_name}' of extension '{ext_name}' must be a string")
    return value


def extension_from_dict(name: str, data: Dict[str, Any]) -> Extension:
    """
    Build an Extension from its grammar table entry.

    Raises:
        CatalogError: unknown fields, wrong types, or a block comment
            start without an end marker (or the reverse).
    """
    if not isinstance(data, dict):
        raise CatalogError(f"Grammar of extension '{name}' must be an object")
    unknown = set(data) - _GRAMMAR_FIELDS
    if unknown:
        raise CatalogError(f"Unknown fields for extension '{name}': {', '.join(sorted(unknown))}")

    start = _optional_string(data.get('multiline_comment_start_symbol'), 'multiline_comment_start_symbol', name)
    end = _optional_string(data.get('multiline_comment_end_symbol'), 'multiline_comment_end_symbol', name)
    if (start is None) != (end is None):
        raise CatalogError(f"Extension '{name}' must define both block comment markers or neither")

    escape = data.get('escape_symbol', '\\')
    escape = _optional_string(escape, 'escape_symbol', name)
    if escape is not None and len(escape) != 1:
        raise CatalogError(f"'escape_symbol' of extension '{name}' must be a single character")

    keywords = []
    for entry in data.get('keywords') or []:
        if not isinstance(entry, dict) or 'descriptive_name' not in entry:
            raise CatalogError(f"Keywords of extension '{name}' need a 'descriptive_name'")
        keywords.append(Keyword(
            descriptive_name=str(entry['descriptive_name']),
            aliases=_string_tuple(entry.get('aliases'), 'aliases', name),
        ))

    return Extension(
        name=normalize_extension_name(name),
        string_symbols=_string_tuple(data.get('string_symbols'), 'string_symbols', name),
        comment_symbol=_optional_string(data.get('comment_symbol'), 'comment_symbol', name),
        multiline_comment_start_symbol=start,
        multiline_comment_end_symbol=end,
        multiline_string_symbols=_string_tuple(data.get('multiline_string_symbols'),
                                               'multiline_string_symbols', name),
        escape_symbol=escape,
        keywords=tuple(keywords),
        literal_tokens=_string_tuple(data.get('literal_tokens'), 'literal_tokens', name),
    )


class ExtensionCatalog:
    """
    Central registry for extension grammars with plugin support.

    The catalog is only mutated while loading; a run works on the
    read-only mapping returned by restricted_to().
    """

    def __init__(self):
        self._extensions: Dict[str, ExtensionInfo] = {}
        self._loaded = False

    def _register(self, info: ExtensionInfo):
        name = info.extension.name
        existing = self._extensions.get(name)
        if existing is not None:
            if info.priority < existing.priority:
                logger.debug(f"Extension {name} already registered with higher priority")
                return
            logger.info(f"Replacing grammar of {name} "
                        f"({existing.source} -> {info.source}, priority {existing.priority} -> {info.priority})")
        self._extensions[name] = info

    def _load_builtin_extensions(self):
        for extension in builtin_extensions():
            self._register(ExtensionInfo(extension=extension, priority=0, source="builtin"))

    def _load_plugin_extensions(self):
        """Load grammars from entry points"""
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                loaded = ep.load()
                if callable(loaded) and not isinstance(loaded, Extension):
                    loaded = loaded()
                grammars = [loaded] if isinstance(loaded, Extension) else list(loaded)
            except Exception as e:
                logger.error(f"Failed to load plugin grammar {ep.name}: {e}")
                continue

            for extension in grammars:
                if not isinstance(extension, Extension):
                    logger.error(f"Plugin {ep.name} yielded {type(extension).__name__}, not an Extension")
                    continue
                self._register(ExtensionInfo(extension=extension, priority=10, source="plugin"))
                logger.info(f"Loaded plugin grammar: {extension.name} ({ep.name})")

    def load(self, force_reload: bool = False):
        """Load built-in and plugin grammars"""
        if self._loaded and not force_reload:
            return
        if force_reload:
            self._extensions.clear()

        self._load_builtin_extensions()
        self._load_plugin_extensions()
        self._loaded = True
        logger.info(f"Loaded {len(self._extensions)} extension grammars")

    def load_file(self, path: Union[str, Path], priority: int = 20):
        """
        Load a JSON grammar table mapping extension names to grammars.

        Raises:
            CatalogError: the file cannot be read or holds malformed data.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogError(f"Cannot read grammar table {path}", cause=e) from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"Invalid JSON in grammar table {path}", cause=e) from e

        if not isinstance(data, dict):
            raise CatalogError(f"Grammar table {path} must map extension names to grammars")

        for name, grammar in data.items():
            self._register(ExtensionInfo(extension=extension_from_dict(name, grammar),
                                         priority=priority, source="file"))
        logger.info(f"Loaded {len(data)} grammars from {path}")

    def register(self, extension: Extension, priority: int = 20):
        """Register a grammar at runtime"""
        self._register(ExtensionInfo(extension=extension, priority=priority, source="custom"))

    def get(self, name: str) -> Optional[Extension]:
        info = self._extensions.get(normalize_extension_name(name))
        return info.extension if info else None

    def __contains__(self, name: str) -> bool:
        return normalize_extension_name(name) in self._extensions

    def __len__(self) -> int:
        return len(self._extensions)

    def names(self) -> List[str]:
        return sorted(self._extensions)

    def restricted_to(self, names: Optional[Iterable[str]] = None) -> Mapping[str, Extension]:
        """
        Read-only name -> Extension mapping for a run. An empty or missing
        allow-list activates every grammar; unknown names are ignored.
        """
        if not names:
            selected = {name: info.extension for name, info in self._extensions.items()}
        else:
            selected = {}
            for name in names:
                name = normalize_extension_name(name)
                if name in self._extensions:
                    selected[name] = self._extensions[name].extension
                else:
                    logger.warning(f"No grammar registered for extension '{name}', ignoring it")
        return MappingProxyType(selected)

    def get_stats(self) -> Dict[str, Any]:
        """Get catalog statistics"""
        by_source: Dict[str, int] = {}
        for info in self._extensions.values():
            by_source[info.source] = by_source.get(info.source, 0) + 1
        return {
            "total_extensions": len(self._extensions),
            "by_source": by_source,
        }


def load_catalog(catalog_file: Optional[Union[str, Path]] = None) -> ExtensionCatalog:
    """Catalog with built-in and plugin grammars, plus an optional grammar table file"""
    catalog = ExtensionCatalog()
    catalog.load()
    if catalog_file is not None:
        catalog.load_file(catalog_file)
    return catalog
