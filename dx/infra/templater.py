"""Jinja2 rendering for configuration-supplied strings such as Helm arguments.

Values are exposed under their top-level keys, so a Helm argument can read
``--set=db.password={{ Secrets.DB_PASSWORD }}`` or
``--set=api.path={{ Services['orders-api'].path }}``.
"""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from dx.infra.errors import TemplateRenderError


class JinjaTemplater:
    """Render template strings with strict undefined handling.

    A reference to a missing key raises instead of rendering an empty
    string; nothing is retried.
    """

    def __init__(self) -> None:
        self._env = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render(self, text: str, name: str, values: dict[str, Any]) -> str:
        """Render ``text`` with ``values``.

        Args:
            text: Template source
            name: Identifier used in error messages (e.g. ``helm-args.0``)
            values: Mapping exposed to the template

        Raises:
            TemplateRenderError: On syntax errors or undefined references
        """
        try:
            return self._env.from_string(text).render(**values)
        except TemplateError as e:
            raise TemplateRenderError(
                f"Failed to render template '{name}'", details=str(e)
            ) from e
