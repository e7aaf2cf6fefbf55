#!/usr/bin/env python3
"""Numbered sidenote markup with back-references.

Every sidenote becomes a pair of anchors: the note itself (``sn-N``) and the
superscript reference that points at it (``sn-ref-N``). Numbers come from a
``SidenoteSession``, which lives for exactly one document render pass.
"""

from __future__ import annotations

import sys

from markupsafe import escape

SIDENOTE_HTML = (
    '<span id="sn-{n}" class="sidenote" data-sidenote-number="{n}">'
    '<sup class="sidenote-number">{n}</sup>&nbsp;{text} '
    '<a class="sidenote-back" href="#sn-ref-{n}">↩</a></span>'
    '<sup class="sidenote-number" id="sn-ref-{n}">'
    '<a href="#sn-{n}">{n}</a></sup>'
)


class SidenoteSession:
    """Sidenote counter for one render pass.

    Not thread-safe: a session must be used sequentially, in document order.
    Render separate documents with separate sessions.
    """

    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def next_number(self) -> int:
        self._count += 1
        return self._count

    def reset(self) -> None:
        self._count = 0

    def __repr__(self) -> str:
        return f"SidenoteSession(count={self._count})"


def new_render_session() -> SidenoteSession:
    return SidenoteSession()


def format_sidenote(number: int, text_html: str) -> str:
    """Assemble the fragment for an already-encoded note body."""
    return SIDENOTE_HTML.format(n=int(number), text=text_html)


def encode_text(text: object, *, escape_text: bool = True) -> str:
    if text is None:
        raise TypeError("Sidenote text cannot be None")
    if escape_text:
        # Objects with __html__ (markupsafe.Markup) are already safe.
        return str(escape(text))
    return str(text)


class SidenoteRenderer:
    def __init__(self, *, escape_text: bool = True) -> None:
        self.escape_text = escape_text

    def new_render_session(self) -> SidenoteSession:
        """Start a new document render pass; numbering restarts at 1."""
        return new_render_session()

    def render(self, text: object, context: SidenoteSession) -> str:
        """Render the next sidenote of ``context``'s document.

        Advances the session counter by one and returns the note fragment
        followed by its reference marker.
        """
        body = encode_text(text, escape_text=self.escape_text)
        number = context.next_number()
        return format_sidenote(number, body)


def render_sidenote(text: object, session: SidenoteSession, *, escape_text: bool = True) -> str:
    return SidenoteRenderer(escape_text=escape_text).render(text, session)


if __name__ == "__main__":
    # Each stdin line is one note of a single document.
    session = new_render_session()
    for line in sys.stdin:
        line = line.rstrip("\n")
        if line:
            print(render_sidenote(line, session))
