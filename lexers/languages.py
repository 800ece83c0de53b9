"""
Built-in extension grammars.

Each entry describes only lexical boundaries (string delimiters, comment
markers) and the keyword groups worth counting. Grammars shared by several
extensions are built once and renamed.
"""

from dataclasses import replace
from typing import Dict, List

from base_classes import Extension, Keyword


def _kw(name: str, *aliases: str) -> Keyword:
    return Keyword(descriptive_name=name, aliases=tuple(aliases))


def _c_family(name: str, keywords, string_symbols=('"', "'"), multiline_strings=()) -> Extension:
    return Extension(
        name=name,
        string_symbols=tuple(string_symbols),
        comment_symbol='//',
        multiline_comment_start_symbol='/*',
        multiline_comment_end_symbol='*/',
        keywords=tuple(keywords),
        multiline_string_symbols=tuple(multiline_strings),
    )


_C = _c_family('c', [
    _kw('structs', 'struct'),
    _kw('enums', 'enum'),
    _kw('includes', '#include'),
])

_CPP = _c_family('cpp', [
    _kw('classes', 'class'),
    _kw('structs', 'struct'),
    _kw('enums', 'enum'),
    _kw('namespaces', 'namespace'),
    _kw('templates', 'template'),
])

_JAVA = _c_family('java', [
    _kw('classes', 'class', 'record'),
    _kw('interfaces', 'interface'),
    _kw('enums', 'enum'),
    _kw('imports', 'import'),
], multiline_strings=('"""',))

_CSHARP = _c_family('cs', [
    _kw('classes', 'class', 'record'),
    _kw('interfaces', 'interface'),
    _kw('structs', 'struct'),
    _kw('enums', 'enum'),
])

_JAVASCRIPT = _c_family('js', [
    _kw('classes', 'class'),
    _kw('functions', 'function', '=>'),
    _kw('imports', 'import', 'require'),
], multiline_strings=('`',))

_TYPESCRIPT = _c_family('ts', [
    _kw('classes', 'class'),
    _kw('interfaces', 'interface'),
    _kw('types', 'type'),
    _kw('enums', 'enum'),
    _kw('functions', 'function', '=>'),
], multiline_strings=('`',))

_GO = _c_family('go', [
    _kw('structs', 'struct'),
    _kw('interfaces', 'interface'),
    _kw('functions', 'func'),
    _kw('goroutines', 'go'),
], string_symbols=('"', "'"), multiline_strings=('`',))

_RUST = Extension(
    name='rs',
    # Lifetimes ('a) make single quotes unusable as string delimiters
    string_symbols=(),
    comment_symbol='//',
    multiline_comment_start_symbol='/*',
    multiline_comment_end_symbol='*/',
    multiline_string_symbols=('"',),
    # Char literals holding a double quote would otherwise open a string
    literal_tokens=("'\"'", "'\\\"'"),
    keywords=(
        _kw('structs', 'struct'),
        _kw('traits', 'trait'),
        _kw('enums', 'enum'),
        _kw('impls', 'impl'),
        _kw('functions', 'fn'),
    ),
)

_KOTLIN = _c_family('kt', [
    _kw('classes', 'class', 'object'),
    _kw('interfaces', 'interface'),
    _kw('functions', 'fun'),
], multiline_strings=('"""',))

_SWIFT = _c_family('swift', [
    _kw('classes', 'class'),
    _kw('structs', 'struct'),
    _kw('protocols', 'protocol'),
    _kw('enums', 'enum'),
    _kw('functions', 'func'),
], string_symbols=('"',), multiline_strings=('"""',))

_SCALA = _c_family('scala', [
    _kw('classes', 'class', 'object'),
    _kw('traits', 'trait'),
    _kw('functions', 'def'),
], string_symbols=('"',), multiline_strings=('"""',))

_PHP = Extension(
    name='php',
    string_symbols=(),
    comment_symbol='//',
    multiline_comment_start_symbol='/*',
    multiline_comment_end_symbol='*/',
    multiline_string_symbols=('"', "'"),
    keywords=(
        _kw('classes', 'class'),
        _kw('interfaces', 'interface'),
        _kw('traits', 'trait'),
        _kw('functions', 'function'),
    ),
)

_PYTHON = Extension(
    name='py',
    string_symbols=('"', "'"),
    comment_symbol='#',
    multiline_string_symbols=('"""', "'''"),
    keywords=(
        _kw('classes', 'class'),
        _kw('functions', 'def'),
        _kw('imports', 'import'),
    ),
)

_RUBY = Extension(
    name='rb',
    string_symbols=('"', "'"),
    comment_symbol='#',
    multiline_comment_start_symbol='=begin',
    multiline_comment_end_symbol='=end',
    keywords=(
        _kw('classes', 'class'),
        _kw('modules', 'module'),
        _kw('functions', 'def'),
    ),
)

_SHELL = Extension(
    name='sh',
    string_symbols=(),
    comment_symbol='#',
    multiline_string_symbols=('"', "'"),
    keywords=(
        _kw('functions', 'function'),
    ),
)

_LUA = Extension(
    name='lua',
    string_symbols=('"', "'"),
    comment_symbol='--',
    multiline_comment_start_symbol='--[[',
    multiline_comment_end_symbol=']]',
    keywords=(
        _kw('functions', 'function'),
        _kw('locals', 'local'),
    ),
)

_SQL = Extension(
    name='sql',
    string_symbols=(),
    comment_symbol='--',
    multiline_comment_start_symbol='/*',
    multiline_comment_end_symbol='*/',
    multiline_string_symbols=("'",),
    escape_symbol=None,
    keywords=(
        _kw('tables', 'TABLE', 'table'),
        _kw('selects', 'SELECT', 'select'),
        _kw('joins', 'JOIN', 'join'),
    ),
)

_CSS = Extension(
    name='css',
    string_symbols=('"', "'"),
    multiline_comment_start_symbol='/*',
    multiline_comment_end_symbol='*/',
)

_HTML = Extension(
    name='html',
    multiline_comment_start_symbol='<!--',
    multiline_comment_end_symbol='-->',
    escape_symbol=None,
)


def builtin_extensions() -> List[Extension]:
    """Every built-in grammar, one entry per file extension"""
    grammars = [
        _C, replace(_C, name='h'),
        _CPP, replace(_CPP, name='cc'), replace(_CPP, name='cxx'),
        replace(_CPP, name='hpp'), replace(_CPP, name='hh'),
        _JAVA, _CSHARP,
        _JAVASCRIPT, replace(_JAVASCRIPT, name='jsx'), replace(_JAVASCRIPT, name='mjs'),
        _TYPESCRIPT, replace(_TYPESCRIPT, name='tsx'),
        _GO, _RUST, _KOTLIN, _SWIFT, _SCALA, _PHP,
        _PYTHON, replace(_PYTHON, name='pyw'), replace(_PYTHON, name='pyi'),
        _RUBY, _SHELL, replace(_SHELL, name='bash'),
        _LUA, _SQL, _CSS, _HTML, replace(_HTML, name='htm'),
    ]
    return grammars


def builtin_catalog() -> Dict[str, Extension]:
    return {ext.name: ext for ext in builtin_extensions()}
