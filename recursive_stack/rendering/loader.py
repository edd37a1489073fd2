"""
Jinja2 environment for export templates.

Templates ship inside the package (rendering/templates/*.jinja2) and are
resolved through the package loader, so exports work from an installed wheel
as well as from a source checkout.
"""

from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined

from .templates import Template

TEMPLATE_SUFFIX = ".jinja2"


@lru_cache(maxsize=1)
def _get_environment() -> Environment:
    # Plain-text output: no autoescaping, block tags leave no blank lines.
    return Environment(
        loader=PackageLoader("recursive_stack.rendering", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _validate_templates():
    """Every Template constant must name a shipped file. Fails fast at import."""
    available = set(_get_environment().list_templates(extensions=[TEMPLATE_SUFFIX.lstrip(".")]))
    for name in dir(Template):
        if name.startswith("_"):
            continue
        filename = getattr(Template, name) + TEMPLATE_SUFFIX
        if filename not in available:
            raise FileNotFoundError(f"Export template missing: {filename}")


_validate_templates()


def render(template_name: str, **context) -> str:
    """Render `template_name` (without suffix) with `context`."""
    return _get_environment().get_template(template_name + TEMPLATE_SUFFIX).render(**context)
