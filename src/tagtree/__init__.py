"""Front end for a brace-delimited markup templating language."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tagtree.ast import Template

__version__ = "0.1.0"


def parse_template(source: str, filename: str = "input.tt") -> Template:
    """Parse template source, raising TemplateError if any fragment is malformed."""
    from tagtree.errors import TemplateError
    from tagtree.parser import parse

    template, diagnostics = parse(source, filename)
    if diagnostics:
        raise TemplateError(diagnostics, source, filename)
    return template
