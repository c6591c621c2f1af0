"""Reading and writing the PHP assignment subset used by SugarCRM packages.

Module loadable packages describe themselves with small PHP scripts such as
``manifest.php``::

    <?php
    $manifest['id'] = 'my_module';
    $manifest['acceptable_sugar_versions']['regex_matches'] = array('^8.[\\d]+.[\\d]+$');

These files are parsed as data, never executed. Supported statements are
variable assignments with any number of ``['key']`` or ``[]`` subscripts,
whose right-hand side is a string, number, boolean, ``null`` or an
``array(...)`` / ``[...]`` literal. Bare statements that do not assign
(``echo "x";``, ``PHP_EOL;``) are ignored.

PHP arrays map to Python lists when their keys are exactly ``0..n-1`` in
order, and to dicts otherwise. Empty arrays become empty lists.

Output follows PHP's ``var_export`` layout so generated files look like the
ones the platform's own tooling writes.
"""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<skip>\s+|//[^\n]*|\#[^\n]*|/\*.*?\*/|<\?php|\?>)
    | (?P<variable>\$[A-Za-z_]\w*)
    | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    | (?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    | (?P<arrow>=>)
    | (?P<punct>[\[\](),;=])
    | (?P<ident>[A-Za-z_]\w*)
    """,
    re.VERBOSE | re.DOTALL,
)

_DOUBLE_QUOTE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "f": "\f",
    "e": "\x1b",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "$": "$",
}

_INTEGER_KEY = re.compile(r"^(0|-?[1-9]\d*)$")


class PhpSyntaxError(ValueError):
    """Raised when a PHP configuration file uses unsupported syntax."""

    def __init__(self, message: str, line: int | None = None) -> None:
        """Initialize with the problem description and source line."""
        self.line = line
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    line: int


def _tokenize(source: str) -> Iterator[_Token]:
    position = 0
    line = 1
    while position < len(source):
        match = _TOKEN_PATTERN.match(source, position)
        if match is None:
            raise PhpSyntaxError(f"Unexpected character {source[position]!r}", line)
        kind = match.lastgroup
        text = match.group()
        if kind != "skip":
            yield _Token(kind=kind, text=text, line=line)
        line += text.count("\n")
        position = match.end()


def _unquote(literal: str) -> str:
    body = literal[1:-1]
    if literal[0] == "'":
        return re.sub(r"\\([\\'])", r"\1", body)
    return re.sub(
        r"\\(.)",
        lambda m: _DOUBLE_QUOTE_ESCAPES.get(m.group(1), m.group(0)),
        body,
        flags=re.DOTALL,
    )


def _normalize_key(key: Any) -> Any:
    """Apply PHP's array key casting rules."""
    if isinstance(key, bool):
        return int(key)
    if isinstance(key, float):
        return int(key)
    if isinstance(key, str) and _INTEGER_KEY.match(key):
        return int(key)
    if key is None:
        return ""
    return key


def _next_index(array: dict[Any, Any]) -> int:
    indices = [key for key in array if isinstance(key, int)]
    return max(indices) + 1 if indices else 0


def _finalize(value: Any) -> Any:
    """Convert parsed PHP arrays into lists or dicts."""
    if not isinstance(value, dict):
        return value
    items = {key: _finalize(item) for key, item in value.items()}
    if list(items) == list(range(len(items))):
        return list(items.values())
    return items


class _Parser:
    def __init__(self, source: str) -> None:
        self._tokens = list(_tokenize(source))
        self._index = 0

    def _peek(self) -> _Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _advance(self) -> _Token:
        token = self._peek()
        if token is None:
            raise PhpSyntaxError("Unexpected end of file")
        self._index += 1
        return token

    def _expect(self, text: str) -> _Token:
        token = self._advance()
        if token.text != text:
            raise PhpSyntaxError(f"Expected '{text}' but found '{token.text}'", token.line)
        return token

    def _at(self, text: str) -> bool:
        token = self._peek()
        return token is not None and token.text == text

    def parse(self) -> dict[str, Any]:
        variables: dict[str, Any] = {}
        while self._peek() is not None:
            token = self._peek()
            if token.kind == "variable":
                self._assignment(variables)
            elif token.text == ";":
                self._advance()
            else:
                self._skip_statement()
        return {name: _finalize(value) for name, value in variables.items()}

    def _skip_statement(self) -> None:
        while not self._at(";"):
            self._advance()
        self._advance()

    def _assignment(self, variables: dict[str, Any]) -> None:
        name = self._advance().text[1:]
        keys: list[Any] = []
        while self._at("["):
            self._advance()
            if self._at("]"):
                keys.append(None)
            else:
                keys.append(_normalize_key(self._expression()))
            self._expect("]")
        self._expect("=")
        value = self._expression()
        self._expect(";")

        if not keys:
            variables[name] = value
            return

        container = variables.get(name)
        if not isinstance(container, dict):
            container = variables[name] = {}
        for position, key in enumerate(keys):
            if key is None:
                key = _next_index(container)
            if position == len(keys) - 1:
                container[key] = value
                break
            child = container.get(key)
            if not isinstance(child, dict):
                child = container[key] = {}
            container = child

    def _expression(self) -> Any:
        token = self._advance()
        if token.kind == "string":
            return _unquote(token.text)
        if token.kind == "number":
            return float(token.text) if any(c in token.text for c in ".eE") else int(token.text)
        if token.kind == "ident":
            lowered = token.text.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            if lowered == "null":
                return None
            if lowered == "array" and self._at("("):
                self._advance()
                return self._array_items(")")
            raise PhpSyntaxError(f"Unsupported expression '{token.text}'", token.line)
        if token.text == "[":
            return self._array_items("]")
        raise PhpSyntaxError(f"Unexpected '{token.text}'", token.line)

    def _array_items(self, closing: str) -> dict[Any, Any]:
        array: dict[Any, Any] = {}
        while not self._at(closing):
            first = self._expression()
            if self._at("=>"):
                self._advance()
                array[_normalize_key(first)] = self._expression()
            else:
                array[_next_index(array)] = first
            if not self._at(closing):
                self._expect(",")
        self._advance()
        return array


def parse_php(source: str) -> dict[str, Any]:
    """Parse PHP assignment statements into a mapping of variable values.

    Args:
        source: PHP source text.

    Returns:
        Mapping of variable name (without ``$``) to its final value.

    Raises:
        PhpSyntaxError: If the source uses syntax outside the supported subset.
    """
    return _Parser(source).parse()


def _export_scalar(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    msg = f"Cannot export value of type {type(value).__name__} to PHP"
    raise TypeError(msg)


def _export(value: Any, indent: int, implicit_indices: bool) -> str:
    if not isinstance(value, (Mapping, list, tuple)):
        return _export_scalar(value)

    pad = " " * indent
    is_sequence = not isinstance(value, Mapping)
    items = enumerate(value) if is_sequence else value.items()
    lines = ["array ("]
    for key, item in items:
        nested = isinstance(item, (Mapping, list, tuple))
        rendered = _export(item, indent + 2, implicit_indices)
        if is_sequence and implicit_indices:
            lines.append(f"{pad}  {rendered},")
        elif nested:
            lines.append(f"{pad}  {_export_scalar(key)} => ")
            lines.append(f"{pad}  {rendered},")
        else:
            lines.append(f"{pad}  {_export_scalar(key)} => {rendered},")
    lines.append(f"{pad})")
    return "\n".join(lines)


def export(value: Any, *, implicit_indices: bool = False) -> str:
    """Render a value as a PHP literal in ``var_export`` layout.

    Args:
        value: Scalar, list or mapping to render.
        implicit_indices: Omit the ``0 =>`` keys of list elements.

    Returns:
        PHP expression text (no trailing semicolon).
    """
    return _export(value, 0, implicit_indices)


def export_assignments(name: str, value: Mapping[str, Any]) -> str:
    """Render a mapping as one assignment statement per leaf key.

    Nested mappings become chained subscripts, matching how package
    authors usually write ``manifest.php`` by hand::

        $manifest['acceptable_sugar_versions']['regex_matches'] = array (...);
    """
    lines: list[str] = []

    def _walk(prefix: str, mapping: Mapping[str, Any]) -> None:
        for key, item in mapping.items():
            target = f"{prefix}[{_export_scalar(key)}]"
            if isinstance(item, Mapping) and item:
                _walk(target, item)
            else:
                lines.append(f"{target} = {export(item)};")

    _walk(f"${name}", value)
    return "\n".join(lines)
