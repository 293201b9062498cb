"""
Placeholder handling for stored LaTeX templates.

Template bodies use LaTeX-compatible Jinja2 delimiters so that ordinary
LaTeX braces, ``#1`` macro arguments and ``%`` comments are left alone:

    <VAR> profile.firstName </VAR>          variable
    <BLOCK> for e in experiences </BLOCK>   block
    /*/*/* note */*/*/                      comment

The ``variables`` list of a template record is always derived from its
content with :func:`extract_variables`.
"""

import logging
from typing import List

from jinja2 import Environment, meta
from jinja2.exceptions import TemplateSyntaxError

from .errors import ValidationError

logger = logging.getLogger(__name__)


def create_latex_environment() -> Environment:
    """Create a Jinja2 environment with LaTeX-safe delimiters."""
    return Environment(
        block_start_string="<BLOCK>",
        block_end_string="</BLOCK>",
        variable_start_string="<VAR>",
        variable_end_string="</VAR>",
        comment_start_string="/*/*/*",
        comment_end_string="*/*/*/",
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


_ENV = create_latex_environment()


def extract_variables(content: str) -> List[str]:
    """
    Return the sorted names of all placeholders referenced by a template body.

    Only top-level names are reported (``<VAR> profile.email </VAR>`` yields
    ``profile``); loop variables bound inside the template are excluded.

    Raises:
        ValidationError: If the content is not a well-formed template.
    """
    if not content:
        return []
    try:
        ast = _ENV.parse(content)
    except TemplateSyntaxError as e:
        raise ValidationError(f"Invalid template syntax on line {e.lineno}: {e.message}")
    names = sorted(meta.find_undeclared_variables(ast))
    logger.debug(f"Template references {len(names)} variable(s)")
    return names
