"""Scaffold generator.

Creates materials, style partials, page templates and page-menu entries in
a butter project.  Every create operation is idempotent: an existing target
file is reported and left alone, with one exception: the material's view
include file, which is rewritten on every call.

Each public method re-reads the files it updates immediately before writing
them; nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from ..config import Config
from ..results import OperationResult, Status
from ..utils import ButterError, dump_json, load_json_list, slugify, write_text
from .paths import ProjectPaths
from .templates import TemplateRenderer

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MATERIAL_TYPES: tuple[str, ...] = ("atom", "helper", "molecule", "organism", "template", "page")

RESERVED_STYLE_NAME = "style"

DEFAULT_DNA = "DNA-ID"

IMPORT_STATEMENT = "@import '{name}'"


class ScaffoldError(ButterError):
    """Raised when generator input fails validation."""


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """File generation for a single project.

    Args:
        config: The loaded butter configuration.
        root: Project root directory (usually the current directory).
        renderer: Template renderer; defaults to one honouring the
            ``templates`` configuration key.
    """

    def __init__(
        self,
        config: Config,
        root: str | Path,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.paths = ProjectPaths.from_config(config, root)
        self.renderer = renderer or TemplateRenderer(config.templates)

    # -- Materials ---------------------------------------------------------

    async def create_material(
        self,
        material_type: str,
        name: str,
        group: str | None = None,
        dna: str | None = None,
        style: str | None = None,
        theme: str | None = None,
    ) -> OperationResult:
        """Create a material file, its group view include and optional style.

        Raises:
            ScaffoldError: If *material_type* is unknown, or if *name*, a
                given *group*, or a requested *style* or its theme fails
                validation.  Nothing is written in that case.
        """
        material_type = (material_type or "").lower()
        if material_type not in MATERIAL_TYPES:
            raise ScaffoldError(
                f"Material type must be one of: {', '.join(MATERIAL_TYPES)} (got {material_type!r})"
            )
        slug = _require_slug(name, "Material name")
        if group:
            _require_slug(group, "Group name")
        if style:
            self._check_style(style, theme)

        result = OperationResult(operation="create material")
        group_id = self.paths.material_group(material_type, slug, group)
        material_file = self.paths.material_file(group_id, slug)

        content = self.renderer.render(
            "material.html", {"type": material_type, "dna": dna or DEFAULT_DNA}
        )
        created = await asyncio.to_thread(_write_if_absent, material_file, content)
        result.add(
            "material",
            Status.CREATED if created else Status.EXISTS,
            material_file,
            f"{material_type} {slug}",
        )

        view_file = self.paths.view_file(group_id)
        view = self.renderer.render("view.html", {"id": group_id})
        existed = view_file.exists()
        await asyncio.to_thread(write_text, view_file, view)
        result.add("view", Status.UPDATED if existed else Status.CREATED, view_file)

        if style:
            result.extend(await self.create_style(style, theme))

        return result

    # -- Styles ------------------------------------------------------------

    async def create_style(self, name: str, theme: str | None = None) -> OperationResult:
        """Create a style partial and import it from the theme aggregator.

        Raises:
            ScaffoldError: For the reserved name ``style`` (in any casing) or
                a name or theme that slugifies to nothing; nothing is written
                in that case.
        """
        slug = self._check_style(name, theme)

        result = OperationResult(operation="create style")
        style_file = self.paths.style_file(slug, theme)
        created = await asyncio.to_thread(
            _write_if_absent, style_file, f"/** {slug} styles **/"
        )
        result.add("style", Status.CREATED if created else Status.EXISTS, style_file)

        aggregator = self.paths.theme_aggregator(theme)
        line = self.renderer.render("import.scss", {"name": slug})
        appended = await asyncio.to_thread(
            _append_if_missing, aggregator, IMPORT_STATEMENT.format(name=slug), line
        )
        result.add("aggregator", Status.UPDATED if appended else Status.UNCHANGED, aggregator)
        return result

    def _check_style(self, name: str, theme: str | None) -> str:
        slug = _require_slug(name, "Style name")
        if slug == RESERVED_STYLE_NAME:
            raise ScaffoldError(f"'{RESERVED_STYLE_NAME}' is a reserved style name")
        _require_slug(theme or self.paths.theme, "Theme name")
        return slug

    # -- Templates ---------------------------------------------------------

    async def create_template(self, name: str) -> OperationResult:
        """Create a full-page template titled after *name*."""
        slug = _require_slug(name, "Template name")
        title = slug.replace("-", " ")
        template_file = self.paths.template_file(slug)

        content = self.renderer.render("page.html", {"title": title})
        created = await asyncio.to_thread(_write_if_absent, template_file, content)

        result = OperationResult(operation="create template")
        result.add("template", Status.CREATED if created else Status.EXISTS, template_file)
        return result

    # -- Page menu ---------------------------------------------------------

    async def create_page(self, url: str, label: str) -> OperationResult:
        """Append ``{url, label}`` to the page menu unless *label* is taken.

        Raises:
            json.JSONDecodeError: If the existing menu file is malformed.
        """
        menu_file = self.paths.page_menu_file
        entries = await asyncio.to_thread(load_json_list, menu_file)

        result = OperationResult(operation="create page")
        if any(isinstance(entry, dict) and entry.get("label") == label for entry in entries):
            result.add("page", Status.EXISTS, menu_file, label)
            return result

        entries.append({"url": url, "label": label})
        await asyncio.to_thread(write_text, menu_file, dump_json(entries))
        result.add("page", Status.CREATED, menu_file, label)
        return result

    # -- Reset -------------------------------------------------------------

    async def cleanse(self, remove_scripts: bool = False, remove_styles: bool = False) -> OperationResult:
        """Delete generated materials and views, then rebuild the skeleton.

        Destructive.  Callers are responsible for confirming with the user
        first.
        """
        return await asyncio.to_thread(self._cleanse, remove_scripts, remove_styles)

    def _cleanse(self, remove_scripts: bool, remove_styles: bool) -> OperationResult:
        paths = self.paths
        result = OperationResult(operation="cleanse")

        _remove_tree(paths.materials_dir, result, "materials")

        if paths.views_dir.is_dir():
            for view in sorted(paths.views_dir.glob("*.html")):
                if view.is_file():
                    view.unlink()
                    result.add("view", Status.REMOVED, view)

        if remove_scripts:
            _remove_tree(paths.scripts_dir, result, "scripts")
        if remove_styles:
            _remove_tree(paths.styles_dir, result, "styles")

        paths.materials_dir.mkdir(parents=True, exist_ok=True)
        result.add("materials", Status.CREATED, paths.materials_dir)

        context = {"theme": slugify(paths.theme)}
        if remove_scripts:
            for sub in ("vendor", "controller"):
                (paths.scripts_dir / sub).mkdir(parents=True, exist_ok=True)
            write_text(
                paths.scripts_aggregator,
                self.renderer.render_skeleton("skeleton/toolkit.js.j2", context),
            )
            result.add("scripts", Status.CREATED, paths.scripts_aggregator)

        if remove_styles:
            (paths.styles_dir / "vendor").mkdir(parents=True, exist_ok=True)
            for target, template in (
                (paths.theme_aggregator(), "skeleton/theme.scss.j2"),
                (paths.libs_aggregator, "skeleton/libs.scss.j2"),
                (paths.styles_aggregator, "skeleton/toolkit.scss.j2"),
            ):
                write_text(target, self.renderer.render_skeleton(template, context))
                result.add("styles", Status.CREATED, target)

        return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _require_slug(name: str | None, label: str) -> str:
    slug = slugify(name or "")
    if not slug:
        raise ScaffoldError(f"{label} is required and must contain a letter or digit")
    return slug


def _write_if_absent(path: Path, content: str) -> bool:
    """Write *content* to *path* unless it exists; return whether it wrote."""
    if path.exists():
        return False
    write_text(path, content)
    return True


def _append_if_missing(path: Path, needle: str, line: str) -> bool:
    """Append *line* to *path* unless *needle* already occurs in it.

    A missing file is created empty first.
    """
    current = path.read_text(encoding="utf-8") if path.exists() else ""
    if needle in current:
        return False
    write_text(path, current + line)
    return True


def _remove_tree(path: Path, result: OperationResult, step: str) -> None:
    if path.exists():
        shutil.rmtree(path)
        result.add(step, Status.REMOVED, path)
