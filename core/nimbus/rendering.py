from pathlib import Path
from typing import Any, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from utils.errors import NimbusError


class SnippetRenderer:
    """Renders the Nimbus boilerplate templates (feature YAML and Swift snippets)."""

    def __init__(self, template_dir: Optional[str] = None):
        if template_dir is None:
            # Default template directory relative to this file
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        try:
            self.env = Environment(
                loader=FileSystemLoader(self.template_dir),
                trim_blocks=True,
                lstrip_blocks=True,
                undefined=StrictUndefined,
            )
        except Exception as e:
            raise NimbusError(f"Failed to initialize Jinja2 environment: {e}") from e

    def render(self, template_name: str, **params: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**params)
        except Exception as e:
            raise NimbusError(f"Failed to render template {template_name}: {e}") from e

    def render_lines(self, template_name: str, **params: Any) -> List[str]:
        return self.render(template_name, **params).split("\n")


renderer = SnippetRenderer()
