"""Protected spans: shield text from later rules behind sentinel tokens.

A token looks like ``\\ue000{kind}_{letters}\\ue001``. Tokens hold no digits,
so digit-oriented rules never match inside them. Every token must be
restored exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass

import regex

from typonorm.surface.base import Match, TextSurface
from typonorm.utils.errors import ProtectedSpanError

TOKEN_OPEN = "\ue000"
TOKEN_CLOSE = "\ue001"

_KIND_RE = regex.compile(r"[a-z]+")


@dataclass
class ProtectedSpan:
    token: str
    kind: str
    original: str
    restored: str | None = None
    done: bool = False

    @property
    def replacement(self) -> str:
        return self.original if self.restored is None else self.restored


def _letters(number: int) -> str:
    # bijective base-26: 0 -> a, 25 -> z, 26 -> aa
    letters = ""
    number += 1
    while number:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("a") + remainder) + letters
    return letters


class ProtectedSpanSet:
    """Typed protect/lookup/restore registry."""

    residue_pattern = f"[{TOKEN_OPEN}{TOKEN_CLOSE}]"

    def __init__(self) -> None:
        self._spans: dict[str, ProtectedSpan] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._spans)

    def protect(self, original: str, *, kind: str, restored: str | None = None) -> str:
        """Register ``original`` and return the token standing in for it.

        ``restored`` is written back instead of ``original`` when given.
        """

        if not _KIND_RE.fullmatch(kind):
            raise ValueError(f"Protected span kind must be lowercase letters: {kind!r}")
        token = f"{TOKEN_OPEN}{kind}_{_letters(self._counter)}{TOKEN_CLOSE}"
        self._counter += 1
        self._spans[token] = ProtectedSpan(token, kind, original, restored)
        return token

    def lookup(self, token: str) -> ProtectedSpan:
        span = self._spans.get(token)
        if span is None:
            raise ProtectedSpanError(f"Unknown protected span token: {token!r}", tokens=[token])
        return span

    @property
    def pending(self) -> list[str]:
        return [token for token, span in self._spans.items() if not span.done]

    def token_pattern(self, kind: str | None = None) -> str:
        kind_pattern = "[a-z]+" if kind is None else regex.escape(kind)
        return f"{TOKEN_OPEN}{kind_pattern}_[a-z]+{TOKEN_CLOSE}"

    def _consume(self, token: str) -> str:
        span = self.lookup(token)
        if span.done:
            raise ProtectedSpanError(f"Protected span restored twice: {token!r}", tokens=[token])
        span.done = True
        return span.replacement

    def restore_text(self, text: str, kind: str | None = None) -> str:
        """Replace the tokens found in ``text`` by their restored form."""

        pattern = regex.compile(self.token_pattern(kind))
        return pattern.sub(lambda found: self._consume(found.group(0)), text)

    def restore_all(self, surface: TextSurface, kind: str | None = None) -> int:
        """Restore the tokens present in the surface; return how many were restored."""

        restored = 0

        def restore(match: Match) -> str:
            nonlocal restored
            restored += 1
            return self._consume(match.contents)

        surface.change_all(self.token_pattern(kind), restore)
        return restored

    def spans(self, kind: str | None = None) -> list[ProtectedSpan]:
        return [span for span in self._spans.values() if kind is None or span.kind == kind]
