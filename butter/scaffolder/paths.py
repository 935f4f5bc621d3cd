"""Path resolution for generated project files.

Every name component is slugified before it becomes part of a path, so the
same user input always maps to the same file.  Nothing here touches the
file system.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..config import Config
from ..utils import slugify

HELPERS_GROUP = "helpers"

DISABLED_PREFIX = "__"


@dataclass(frozen=True)
class ProjectPaths:
    """Derived paths for a project rooted at ``root``."""

    root: Path
    src: str = "src"
    theme: str = "default"

    @classmethod
    def from_config(cls, config: Config, root: str | Path) -> "ProjectPaths":
        return cls(root=Path(root).resolve(), src=config.src, theme=config.theme)

    # ------------------------------------------------------------------
    # Source tree
    # ------------------------------------------------------------------

    @property
    def source_dir(self) -> Path:
        return self.root / self.src

    @property
    def materials_dir(self) -> Path:
        return self.source_dir / "materials"

    @property
    def views_dir(self) -> Path:
        return self.source_dir / "views"

    @property
    def templates_dir(self) -> Path:
        """Directory holding full-page templates."""
        return self.views_dir / "templates"

    @property
    def page_menu_file(self) -> Path:
        return self.source_dir / "data" / "pages.json"

    @property
    def assets_dir(self) -> Path:
        return self.source_dir / "assets" / "toolkit"

    @property
    def scripts_dir(self) -> Path:
        return self.assets_dir / "scripts"

    @property
    def scripts_aggregator(self) -> Path:
        return self.scripts_dir / "toolkit.js"

    @property
    def styles_dir(self) -> Path:
        return self.assets_dir / "styles"

    @property
    def styles_aggregator(self) -> Path:
        return self.styles_dir / "toolkit.scss"

    @property
    def libs_aggregator(self) -> Path:
        """The global stylesheet importing every infused toolkit."""
        return self.styles_dir / "_libs.scss"

    @property
    def lib_dir(self) -> Path:
        return self.assets_dir / "lib"

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    def material_group(self, material_type: str, name: str, group: str | None = None) -> str:
        """Group id for a material: ``helpers`` for helpers, else group or name."""
        if material_type == "helper":
            return HELPERS_GROUP
        return slugify(group) if group else slugify(name)

    def material_dir(self, group_id: str) -> Path:
        return self.materials_dir / slugify(group_id)

    def material_file(self, group_id: str, name: str) -> Path:
        return self.material_dir(group_id) / f"{slugify(name)}.html"

    def view_file(self, group_id: str) -> Path:
        """The include file listing every material in *group_id*."""
        return self.views_dir / f"{slugify(group_id)}.html"

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def theme_dir(self, theme: str | None = None) -> Path:
        return self.styles_dir / "themes" / slugify(theme or self.theme)

    def style_file(self, name: str, theme: str | None = None) -> Path:
        return self.theme_dir(theme) / f"_{slugify(name)}.scss"

    def theme_aggregator(self, theme: str | None = None) -> Path:
        return self.theme_dir(theme) / "_style.scss"

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def template_file(self, name: str) -> Path:
        return self.templates_dir / f"{slugify(name)}.html"

    # ------------------------------------------------------------------
    # Toolkits
    # ------------------------------------------------------------------

    def toolkit_dir(self, name: str) -> Path:
        return self.lib_dir / slugify(name)

    def disabled_toolkit_dir(self, name: str) -> Path:
        return self.lib_dir / f"{DISABLED_PREFIX}{slugify(name)}"
