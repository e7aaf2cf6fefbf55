#!/usr/bin/env python3
"""Jinja2 ``sidenote`` tag.

Block form::

    {% sidenote %}Some note text{% endsidenote %}

Inline form, the equivalent of a Liquid tag argument::

    {% sidenote "Some note text" %}

Numbering belongs to the active render pass, not to a template context, so
notes in included templates, imported macros and inherited blocks all share
one sequence that starts at 1 for every document.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, Union

from jinja2 import BaseLoader, Environment, Template, nodes
from jinja2.ext import Extension
from markupsafe import Markup

from sidenotes import SidenoteRenderer, SidenoteSession, new_render_session

_active_session: ContextVar[Optional[SidenoteSession]] = ContextVar("sidenote_session", default=None)


@contextmanager
def render_pass(session: Optional[SidenoteSession] = None) -> Iterator[SidenoteSession]:
    """Make ``session`` (or a fresh one) the active session until exit."""
    if session is None:
        session = new_render_session()
    token = _active_session.set(session)
    try:
        yield session
    finally:
        _active_session.reset(token)


def active_session() -> SidenoteSession:
    session = _active_session.get()
    if session is None:
        raise RuntimeError(
            "sidenote rendered outside a render pass; use Template.render(), "
            "render_document() or render_pass()"
        )
    return session


class SidenoteTemplate(Template):
    """Template whose ``render`` is one sidenote render pass.

    A render nested inside an active pass joins it instead of restarting.
    """

    def render(self, *args: Any, **kwargs: Any) -> str:
        if _active_session.get() is not None:
            return super().render(*args, **kwargs)
        with render_pass():
            return super().render(*args, **kwargs)


class SidenoteExtension(Extension):
    tags = {"sidenote"}

    def __init__(self, environment: Environment) -> None:
        super().__init__(environment)
        environment.extend(sidenote_escape=True)
        if environment.template_class is Template:
            environment.template_class = SidenoteTemplate

    def parse(self, parser):
        lineno = next(parser.stream).lineno
        if parser.stream.current.type == "block_end":
            body = parser.parse_statements(("name:endsidenote",), drop_needle=True)
            call = self.call_method("_render_block")
            return nodes.CallBlock(call, [], [], body).set_lineno(lineno)

        text = parser.parse_expression()
        call = self.call_method("_render_inline", [text])
        return nodes.Output([call]).set_lineno(lineno)

    def _render_block(self, caller: Callable[[], str]) -> Markup:
        return self._render(caller())

    def _render_inline(self, text: Any) -> Markup:
        return self._render(text)

    def _render(self, text: Any) -> Markup:
        renderer = SidenoteRenderer(escape_text=self.environment.sidenote_escape)
        return Markup(renderer.render(text, active_session()))


def create_environment(
    loader: Optional[BaseLoader] = None,
    *,
    escape_text: bool = True,
    autoescape: bool = False,
) -> Environment:
    env = Environment(
        loader=loader,
        autoescape=autoescape,
        keep_trailing_newline=True,
        extensions=[SidenoteExtension],
    )
    env.sidenote_escape = escape_text
    return env


def render_document(
    source: Union[str, Template],
    environment: Optional[Environment] = None,
    session: Optional[SidenoteSession] = None,
    **variables: Any,
) -> str:
    """Render one document as a single sidenote render pass.

    A fresh session is used unless one is given; passing the same session to
    several calls continues its numbering.
    """
    if isinstance(source, Template):
        template = source
    else:
        template = (environment or create_environment()).from_string(source)
    with render_pass(session):
        return template.render(**variables)


if __name__ == "__main__":
    print(render_document(sys.stdin.read()), end="")
