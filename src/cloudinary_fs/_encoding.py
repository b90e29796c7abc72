"""Path codec: hierarchical names <-> names safe for the remote store.

Reserved characters are swapped for look-alike code points (fullwidth forms,
control pictures). A literal look-alike in the input is protected with a quote
rune so that decoding is the exact inverse of encoding.

The ampersand is handled outside the configurable ruleset: the remote's search
expressions read ``&`` as a boolean operator, so it always travels as U+FF06.
"""

from __future__ import annotations

import enum
import functools
import operator
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from cloudinary_fs._path import RemotePath

QUOTE: Final = "‛"
AMPERSAND_PLACEHOLDER: Final = "＆"
_SPACE_SYMBOL: Final = "␠"
_FULLWIDTH_DOT: Final = "．"
_FULLWIDTH_OFFSET: Final = 0xFEE0


class EncodingFlag(enum.Flag):
    """Character classes that get replaced on the way to the remote."""

    NONE = 0
    SLASH = enum.auto()
    LT_GT = enum.auto()
    DOUBLE_QUOTE = enum.auto()
    QUESTION = enum.auto()
    ASTERISK = enum.auto()
    PIPE = enum.auto()
    HASH = enum.auto()
    PERCENT = enum.auto()
    BACK_SLASH = enum.auto()
    DEL = enum.auto()
    CTL = enum.auto()
    RIGHT_SPACE = enum.auto()
    DOT = enum.auto()

    @classmethod
    def parse(cls, text: str) -> EncodingFlag:
        """Parse a comma-separated ruleset such as ``"Slash,LtGt,Dot"``.

        Names are matched case-insensitively with underscores ignored.

        :raises ValueError: On an unknown name.
        """
        lookup = {name.replace("_", ""): member for name, member in cls.__members__.items()}
        flags = cls.NONE
        for raw in text.split(","):
            key = raw.strip().replace("_", "").upper()
            if not key:
                continue
            if key not in lookup:
                raise ValueError(f"Unknown encoding flag {raw.strip()!r}. Known flags: {sorted(lookup)}")
            flags |= lookup[key]
        return flags


DEFAULT_ENCODING: Final = functools.reduce(operator.or_, EncodingFlag.__members__.values())

_PUNCTUATION: Final = {
    EncodingFlag.SLASH: "/",
    EncodingFlag.LT_GT: "<>",
    EncodingFlag.DOUBLE_QUOTE: '"',
    EncodingFlag.QUESTION: "?",
    EncodingFlag.ASTERISK: "*",
    EncodingFlag.PIPE: "|",
    EncodingFlag.HASH: "#",
    EncodingFlag.PERCENT: "%",
    EncodingFlag.BACK_SLASH: "\\",
}


class PathEncoder:
    """Configurable, reversible name encoder.

    :param flags: The character classes to replace.
    """

    def __init__(self, flags: EncodingFlag = DEFAULT_ENCODING) -> None:
        self.flags = flags
        char_map: dict[str, str] = {}
        for flag, chars in _PUNCTUATION.items():
            if flag in flags:
                for c in chars:
                    char_map[c] = chr(ord(c) + _FULLWIDTH_OFFSET)
        if EncodingFlag.CTL in flags:
            for code in range(0x20):
                char_map[chr(code)] = chr(0x2400 + code)
        if EncodingFlag.DEL in flags:
            char_map["\x7f"] = "␡"
        reverse = {v: k for k, v in char_map.items()}
        if EncodingFlag.RIGHT_SPACE in flags:
            reverse[_SPACE_SYMBOL] = " "
        if EncodingFlag.DOT in flags:
            reverse[_FULLWIDTH_DOT] = "."
        self._char_map = char_map
        self._reverse = reverse
        self.protected = frozenset(reverse) | {QUOTE, AMPERSAND_PLACEHOLDER}

    def __repr__(self) -> str:
        return f"PathEncoder({self.flags!r})"

    def encode_name(self, name: str) -> str:
        """Encode a single path segment."""
        if EncodingFlag.DOT in self.flags and name in (".", ".."):
            return _FULLWIDTH_DOT * len(name)
        last = len(name) - 1
        out: list[str] = []
        for i, c in enumerate(name):
            if c in self._char_map:
                out.append(self._char_map[c])
            elif c in self.protected:
                out.append(QUOTE + c)
            elif c == " " and i == last and EncodingFlag.RIGHT_SPACE in self.flags:
                out.append(_SPACE_SYMBOL)
            else:
                out.append(c)
        return "".join(out)

    def decode_name(self, name: str) -> str:
        """Invert :meth:`encode_name`."""
        out: list[str] = []
        i = 0
        while i < len(name):
            c = name[i]
            if c == QUOTE and i + 1 < len(name) and name[i + 1] in self.protected:
                out.append(name[i + 1])
                i += 2
                continue
            out.append(self._reverse.get(c, c))
            i += 1
        return "".join(out)

    def encode_path(self, path: str) -> str:
        """Encode a ``/``-separated path segment by segment."""
        if not path:
            return ""
        return "/".join(self.encode_name(segment) for segment in path.split("/"))

    def decode_path(self, path: str) -> str:
        """Invert :meth:`encode_path`."""
        if not path:
            return ""
        return "/".join(self.decode_name(segment) for segment in path.split("/"))


class CloudinaryCodec:
    """Maps between standard (hierarchical) and remote names and paths.

    The ampersand pass is the outermost layer: applied last when encoding and
    undone first, quote-aware, when decoding.

    :param encoder: The configurable encoder for the generic character classes.
    """

    def __init__(self, encoder: PathEncoder | None = None) -> None:
        self.encoder = encoder or PathEncoder()

    def __repr__(self) -> str:
        return f"CloudinaryCodec({self.encoder!r})"

    @staticmethod
    def _hide_ampersands(s: str) -> str:
        return s.replace("&", AMPERSAND_PLACEHOLDER)

    def _restore_ampersands(self, s: str) -> str:
        out: list[str] = []
        i = 0
        while i < len(s):
            c = s[i]
            if c == QUOTE and i + 1 < len(s) and s[i + 1] in self.encoder.protected:
                out.append(s[i : i + 2])
                i += 2
                continue
            out.append("&" if c == AMPERSAND_PLACEHOLDER else c)
            i += 1
        return "".join(out)

    def to_remote_name(self, name: str) -> str:
        return self._hide_ampersands(self.encoder.encode_name(name))

    def to_remote_path(self, path: str) -> str:
        return self._hide_ampersands(self.encoder.encode_path(path))

    def to_standard_name(self, name: str) -> str:
        return self.encoder.decode_name(self._restore_ampersands(name))

    def to_standard_path(self, path: str) -> str:
        return self.encoder.decode_path(self._restore_ampersands(path))

    def full_path(self, root: RemotePath, path: RemotePath | str = "") -> str:
        """Encoded path of ``path`` below ``root``; never ends with a separator."""
        return self.to_remote_path(str(root.join(str(path))))

    def remote_dir(self, root: RemotePath, path: RemotePath) -> str:
        """Encoded folder holding ``path``; empty for entries at the store root."""
        return self.full_path(root, path.parent)
