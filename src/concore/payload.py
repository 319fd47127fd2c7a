"""Payload decoding and encoding for mailbox messages.

A mailbox file holds a bracketed, comma separated literal such as
``[3.0, 1.5, -2.0]``: the first element is the simulated time and the rest are
signal values. Writers built on NumPy frequently leak their scalar reprs into
these files, so a payload may also read ``[3.0, np.float64(1.5), -2.0]`` or
``[0, np.array([1, 2])]``.

Decoding is done in two stages:
    1. ``sanitize`` strips the NumPy constructor wrappers and rewrites the
       Python spellings ``None``/``True``/``False`` to neutral tokens. It is
       repeated until the text stops changing so nested wrappers unwind.
    2. A small recursive-descent parser reads the sanitized text. The grammar
       only knows numbers, brackets, commas and the three neutral tokens, so
       nothing in a payload is ever evaluated as code.

Example:
    >>> decode("[0.0, np.float64(1.5), 2.0]")
    array([0. , 1.5, 2. ])
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

import numpy as np

from .errors import MalformedPayload

NUMPY_ALIASES = ("np", "numpy")
MAX_DEPTH = 64

_ALIAS = "(?:" + "|".join(NUMPY_ALIASES) + ")"
_ANNOTATION_RE = re.compile(rf"\b{_ALIAS}\.\w+\(([^()]+)\)")
_ARRAY_RE = re.compile(rf"\b{_ALIAS}\.array\((\[[^\]]*\])\)")
_WORD_RE = re.compile(r"\b(None|True|False)\b")
_NEUTRAL_WORDS = {"None": "null", "True": "true", "False": "false"}

_TOKEN_RE = re.compile(
    r"""
    (?P<punct>[\[\],])
    | (?P<number>[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|nan))
    | (?P<word>true|false|null)
    """,
    re.VERBOSE,
)

_WORD_VALUES = {"true": 1.0, "false": 0.0, "null": 0.0}


def sanitize(text: str) -> str:
    """Unwrap NumPy annotations and neutralize Python literal spellings.

    ``np.float64(1.5)`` becomes ``1.5``, ``np.array([1, 2])`` becomes
    ``[1, 2]`` and the whole words ``None``, ``True``, ``False`` become
    ``null``, ``true``, ``false``. Applying it to its own output is a no-op.
    """
    result = text
    previous = None
    passes = 0
    while passes < 2 or result != previous:
        previous = result
        result = _ANNOTATION_RE.sub(r"\1", result)
        result = _ARRAY_RE.sub(r"\1", result)
        result = _WORD_RE.sub(lambda match: _NEUTRAL_WORDS[match.group(1)], result)
        passes += 1
    return result


class _Token:
    __slots__ = ("kind", "text", "pos")

    def __init__(self, kind: str, text: str, pos: int) -> None:
        self.kind = kind
        self.text = text
        self.pos = pos


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise MalformedPayload(
                f"Unexpected character {text[pos]!r} at offset {pos} in payload {text!r}",
                text,
            )
        kind = match.lastgroup
        tokens.append(_Token(kind, match.group(kind), pos))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent reader producing nested lists of floats and words."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.index = 0
        self.depth = 0

    def _peek(self) -> _Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _fail(self, message: str) -> MalformedPayload:
        return MalformedPayload(f"{message} in payload {self.text!r}", self.text)

    def parse(self):
        if not self.tokens:
            raise self._fail("Empty payload")
        value = self._value()
        token = self._peek()
        if token is not None:
            raise self._fail(f"Trailing {token.text!r} at offset {token.pos}")
        return value

    def _value(self):
        token = self._peek()
        if token is None:
            raise self._fail("Unexpected end of input")
        if token.kind == "number":
            self.index += 1
            return float(token.text)
        if token.kind == "word":
            self.index += 1
            return token.text
        if token.text == "[":
            return self._sequence()
        raise self._fail(f"Unexpected {token.text!r} at offset {token.pos}")

    def _sequence(self) -> list:
        token = self._peek()
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise self._fail(f"Nesting deeper than {MAX_DEPTH} levels at offset {token.pos}")
        items = self._items()
        self.depth -= 1
        return items

    def _items(self) -> list:
        self.index += 1  # opening bracket
        items: list = []
        token = self._peek()
        if token is not None and token.text == "]":
            self.index += 1
            return items
        while True:
            items.append(self._value())
            token = self._peek()
            if token is None:
                raise self._fail("Unbalanced '['")
            self.index += 1
            if token.text == "]":
                return items
            if token.text != ",":
                raise self._fail(f"Expected ',' or ']' at offset {token.pos}, got {token.text!r}")
            # trailing comma
            token = self._peek()
            if token is not None and token.text == "]":
                self.index += 1
                return items


def _leaf_value(leaf, allow_non_numeric: bool, text: str) -> float:
    if isinstance(leaf, float):
        return leaf
    if not allow_non_numeric:
        raise MalformedPayload(f"Non-numeric leaf {leaf!r} in payload {text!r}", text)
    return _WORD_VALUES[leaf]


def _flatten(tree: list, allow_non_numeric: bool, text: str) -> Iterator[float]:
    for item in tree:
        if isinstance(item, list):
            yield from _flatten(item, allow_non_numeric, text)
        else:
            yield _leaf_value(item, allow_non_numeric, text)


def decode(raw: str, allow_non_numeric: bool = False) -> np.ndarray:
    """Decode a payload string into a flat float64 array.

    Args:
        raw: Payload text, e.g. ``"[0.0, np.float64(1.5), 2.0]"``.
        allow_non_numeric: Map ``true``/``false``/``null`` leaves to
            1.0/0.0/0.0 instead of rejecting them.

    Raises:
        MalformedPayload: The text is not a bracketed numeric sequence after
            sanitization, nests deeper than ``MAX_DEPTH`` brackets, or holds
            a non-numeric leaf that was not allowed.
    """
    text = sanitize(raw.strip())
    tree = _Parser(text).parse()
    if not isinstance(tree, list):
        raise MalformedPayload(f"Expected a bracketed sequence, got {text!r}", text)
    return np.array(list(_flatten(tree, allow_non_numeric, text)), dtype=float)


def decode_scalar(raw: str, allow_non_numeric: bool = False) -> float:
    """Decode a payload holding one bare number, e.g. ``"4.5"``."""
    text = sanitize(raw.strip())
    value = _Parser(text).parse()
    if isinstance(value, list):
        raise MalformedPayload(f"Expected a single number, got {text!r}", text)
    return _leaf_value(value, allow_non_numeric, text)


def encode(values: Iterable[float]) -> str:
    """Render values in the mailbox file format, e.g. ``"[0.0, 42.0, 3.14]"``."""
    return "[" + ", ".join(repr(float(value)) for value in values) + "]"


def split_message(decoded: np.ndarray) -> tuple[float, np.ndarray]:
    """Split a decoded message into its timestamp and value vector."""
    if decoded.size == 0:
        raise MalformedPayload("Message carries no timestamp")
    return float(decoded[0]), decoded[1:]
