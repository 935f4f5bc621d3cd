"""Template rendering for butter scaffolding.

Two kinds of templates live under ``butter/scaffolder/templates/``:

* Placeholder templates (``material.html``, ``view.html``, ``page.html``,
  ``import.scss``) use ``${name}`` tokens, substituted case-insensitively by
  :func:`render_placeholders`.  Generated projects depend on this format, so
  it is kept independent of Jinja2 syntax.
* Skeleton templates (``skeleton/*.j2``) are regular Jinja2 templates used
  when ``cleanse`` rebuilds the asset tree.

Both are located through a Jinja2 ``FileSystemLoader`` so a missing template
raises ``jinja2.TemplateNotFound``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------


def render_placeholders(text: str, values: Mapping[str, Any]) -> str:
    """Replace every case-insensitive ``${key}`` in *text* with ``values[key]``.

    Placeholders without a matching key are left untouched.  Replacement
    values are inserted literally; nothing is expanded twice.
    """
    if not values:
        return text
    lookup = {key.lower(): str(value) for key, value in values.items()}
    pattern = re.compile(
        r"\$\{(" + "|".join(re.escape(key) for key in values) + r")\}", re.IGNORECASE
    )
    return pattern.sub(lambda match: lookup[match.group(1).lower()], text)


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Loads and renders the bundled scaffolding templates.

    A project may point the ``templates`` configuration key at its own
    directory; templates not found there fall back to the bundled set.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        search_path = [str(_DEFAULT_TEMPLATE_DIR)]
        if template_dir is not None:
            search_path.insert(0, str(template_dir))
        self.template_dir = Path(search_path[0])
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Placeholder templates ---------------------------------------------

    def source(self, template_name: str) -> str:
        """Return the raw text of *template_name*."""
        text, _filename, _uptodate = self.env.loader.get_source(self.env, template_name)
        return text

    def render(self, template_name: str, values: Mapping[str, Any]) -> str:
        """Load a placeholder template and substitute *values* into it."""
        return render_placeholders(self.source(template_name), values)

    # -- Skeleton templates ------------------------------------------------

    def render_skeleton(self, template_name: str, context: dict[str, Any]) -> str:
        """Render a Jinja2 skeleton template with *context*."""
        template = self.env.get_template(template_name)
        return template.render(**context)

    # -- Utility -----------------------------------------------------------

    def list_templates(self) -> list[str]:
        """Return a sorted list of every template name visible to the loader."""
        return sorted(self.env.list_templates())
