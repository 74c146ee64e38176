"""Jinja2 extension accepting Go ``text/template`` actions.

kind templates are written in Go template syntax. Instead of keeping a Jinja
copy of every template, the source is rewritten action by action before Jinja
lexes it, so ``{{.ClusterName}}`` becomes ``{{ _dot['ClusterName'] }}`` and
``{{if ne .A ""}}...{{end}}`` becomes ``{% if (_dot['A'] != "") %}...{% endif %}``.

Fields are looked up only in the mapping bound to ``_dot``, never through
Jinja globals or Python attributes; ``GoTemplateEnvironment`` enforces that
for chained lookups.

Understood actions:

* field access: ``.Field``, ``.Outer.Inner``
* literals: strings, raw strings, numbers, ``true``, ``false``, ``nil``
* functions: ``eq ne lt le gt ge not and or len``
* ``if`` / ``else if`` / ``else`` / ``end``
* comments ``/* ... */`` and the ``{{- `` / `` -}}`` trim markers

Anything else raises ``TemplateSyntaxError``, so it surfaces as a parse
failure rather than as odd output.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, NoReturn

from jinja2 import Environment, Undefined
from jinja2.exceptions import TemplateSyntaxError
from jinja2.ext import Extension

# context variable holding the template data, Go's "dot"
DOT = '_dot'

ACTION_PATTERN = re.compile(
    r'\{\{(?P<left_trim>-(?=\s))?'
    r'(?P<body>(?:"(?:[^"\\\n]|\\.)*"|`[^`]*`|.)*?)'
    r'(?P<right_trim>(?<=\s)-)?\}\}',
    re.DOTALL,
)

TOKEN_PATTERN = re.compile(
    r'''\s*(?:
        (?P<string>"(?:[^"\\\n]|\\.)*")
      | (?P<raw_string>`[^`]*`)
      | (?P<field>(?:\.[A-Za-z_]\w*)+)
      | (?P<number>[+-]?\d+(?:\.\d+)?)
      | (?P<identifier>[A-Za-z_]\w*)
    )''',
    re.VERBOSE,
)

# Go trims exactly these around {{- and -}}
TRIM_CHARACTERS = ' \t\r\n'

COMPARISON_OPERATORS = {'eq': '==', 'ne': '!=', 'lt': '<', 'le': '<=', 'gt': '>', 'ge': '>='}

CONSTANTS = {'true': 'true', 'false': 'false', 'nil': 'none'}

UNSUPPORTED_ACTIONS = ('range', 'with', 'define', 'template', 'block', 'break', 'continue')


class GoTemplateSyntax(Extension):
    def preprocess(self, source: str, name: str | None, filename: str | None = None) -> str:
        return _GoTemplateTranslator(source, name, filename).translate()


class GoTemplateEnvironment(Environment):
    """Environment whose lookups only index mappings.

    A field that is not a key of the data, including Python attributes such
    as ``upper`` or ``__class__``, is undefined.
    """

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, Undefined):
            return obj
        if isinstance(obj, Mapping) and argument in obj:
            return obj[argument]

        return self.undefined(obj=obj, name=argument, hint=f"can't evaluate field {argument}")

    def getattr(self, obj: Any, attribute: str) -> Any:
        return self.getitem(obj, attribute)


class _GoTemplateTranslator:
    def __init__(self, source: str, name: str | None, filename: str | None):
        self.source = source
        self.name = name
        self.filename = filename
        self._open_blocks = 0

    def translate(self) -> str:
        translated = []
        position = 0
        trim_next_text = False

        for match in ACTION_PATTERN.finditer(self.source):
            text = self.source[position:match.start()]
            if trim_next_text:
                text = text.lstrip(TRIM_CHARACTERS)
            if match.group('left_trim'):
                text = text.rstrip(TRIM_CHARACTERS)

            translated.append(self._text(text, position))
            translated.append(self._action(match.group('body').strip(), self._lineno(match.start())))

            trim_next_text = bool(match.group('right_trim'))
            position = match.end()

        text = self.source[position:]
        if trim_next_text:
            text = text.lstrip(TRIM_CHARACTERS)
        translated.append(self._text(text, position))

        if self._open_blocks:
            self._fail('unexpected EOF', self._lineno(len(self.source)))

        return ''.join(translated)

    def _lineno(self, offset: int) -> int:
        return self.source.count('\n', 0, offset) + 1

    def _fail(self, message: str, lineno: int) -> NoReturn:
        raise TemplateSyntaxError(message, lineno, self.name, self.filename)

    def _text(self, text: str, offset: int) -> str:
        unclosed = text.find('{{')
        if unclosed != -1:
            self._fail('unclosed action', self._lineno(offset + unclosed))

        if '{%' in text or '{#' in text:
            return f'{{{{ {text!r} }}}}'

        return text

    def _action(self, body: str, lineno: int) -> str:
        if body.startswith('/*'):
            if not body.endswith('*/'):
                self._fail('unclosed comment', lineno)
            return ''

        keyword, rest = _split_keyword(body)

        if keyword == 'if':
            self._open_blocks += 1
            return f'{{% if {self._pipeline(rest, lineno, keyword)} %}}'

        if keyword == 'else':
            if not self._open_blocks:
                self._fail('unexpected {{else}}', lineno)
            if not rest:
                return '{% else %}'

            nested_keyword, condition = _split_keyword(rest)
            if nested_keyword != 'if':
                self._fail(f'unexpected "{rest}" in else', lineno)
            return f'{{% elif {self._pipeline(condition, lineno, "if")} %}}'

        if keyword == 'end':
            if rest:
                self._fail(f'unexpected "{rest}" in end', lineno)
            if not self._open_blocks:
                self._fail('unexpected {{end}}', lineno)
            self._open_blocks -= 1
            return '{% endif %}'

        if keyword in UNSUPPORTED_ACTIONS:
            self._fail(f'unsupported action "{keyword}"', lineno)

        return f'{{{{ {self._pipeline(body, lineno)} }}}}'

    def _pipeline(self, body: str, lineno: int, context: str = 'command') -> str:
        tokens = self._tokenize(body, lineno)
        if not tokens:
            self._fail(f'missing value for {context}', lineno)

        kind, value = tokens[0]
        if kind != 'identifier' or value in CONSTANTS:
            if len(tokens) > 1:
                self._fail(f"can't give argument to non-function {value}", lineno)
            return self._operand(kind, value, lineno)

        arguments = [self._operand(arg_kind, arg_value, lineno) for arg_kind, arg_value in tokens[1:]]

        return self._call(value, arguments, lineno)

    def _tokenize(self, body: str, lineno: int) -> list[tuple[str, str]]:
        tokens = []
        position = 0

        while position < len(body):
            match = TOKEN_PATTERN.match(body, position)
            if match is None:
                remainder = body[position:].lstrip()
                if not remainder:
                    break
                if remainder == '.':
                    self._fail('unsupported action "."', lineno)
                self._fail(f'unexpected "{remainder[0]}" in command', lineno)

            tokens.append((match.lastgroup, match.group(match.lastgroup)))
            position = match.end()

        return tokens

    def _operand(self, kind: str, value: str, lineno: int) -> str:
        if kind == 'field':
            return DOT + ''.join(f'[{name!r}]' for name in value[1:].split('.'))
        if kind == 'raw_string':
            return repr(value[1:-1])
        if kind == 'identifier':
            if value in CONSTANTS:
                return CONSTANTS[value]
            self._fail(f'function "{value}" not supported as an argument', lineno)

        return value

    def _call(self, function: str, arguments: list[str], lineno: int) -> str:
        if function == 'eq':
            if len(arguments) < 2:
                self._fail(f'wrong number of args for eq: want at least 2 got {len(arguments)}', lineno)
            first, *others = arguments
            return '(' + ' or '.join(f'{first} == {other}' for other in others) + ')'

        if function in COMPARISON_OPERATORS:
            self._check_arity(function, arguments, 2, lineno)
            return f'({arguments[0]} {COMPARISON_OPERATORS[function]} {arguments[1]})'

        if function == 'not':
            self._check_arity(function, arguments, 1, lineno)
            return f'(not {arguments[0]})'

        if function == 'len':
            self._check_arity(function, arguments, 1, lineno)
            return f'({arguments[0]}|length)'

        if function in ('and', 'or'):
            if not arguments:
                self._fail(f'wrong number of args for {function}: want at least 1 got 0', lineno)
            return '(' + f' {function} '.join(arguments) + ')'

        self._fail(f'function "{function}" not defined', lineno)

    def _check_arity(self, function: str, arguments: list[str], expected: int, lineno: int) -> None:
        if len(arguments) != expected:
            self._fail(f'wrong number of args for {function}: want {expected} got {len(arguments)}', lineno)


def _split_keyword(body: str) -> tuple[str, str]:
    parts = body.split(None, 1)
    if not parts:
        return '', ''

    return parts[0], parts[1].strip() if len(parts) > 1 else ''
