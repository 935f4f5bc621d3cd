"""butter scaffolder: generates materials, styles, templates and pages.

Quick usage::

    from butter.config import Config
    from butter.scaffolder import ScaffoldGenerator

    generator = ScaffoldGenerator(Config(), root=".")
    result = await generator.create_material("molecule", "btn-primary", group="buttons")
"""

from butter.scaffolder.generator import MATERIAL_TYPES, ScaffoldError, ScaffoldGenerator
from butter.scaffolder.paths import ProjectPaths
from butter.scaffolder.templates import TemplateRenderer, render_placeholders

__all__ = [
    "MATERIAL_TYPES",
    "ProjectPaths",
    "ScaffoldError",
    "ScaffoldGenerator",
    "TemplateRenderer",
    "render_placeholders",
]
