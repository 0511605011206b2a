"""Link preview pages served to crawlers and link unfurlers."""

from jinja2 import Environment

DEFAULT_TITLE = "Link Preview"
DEFAULT_DESCRIPTION = "Link Description"
DEFAULT_IMAGE = "#"

_environment = Environment(autoescape=True)

PREVIEW_TEMPLATE = _environment.from_string(
    """<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>{{ title }}</title>
    <meta property="og:title" content="{{ title }}" />
    <meta property="og:description" content="{{ description }}" />
    <meta property="og:image" content="{{ image }}" />
  </head>
</html>
"""
)


def render_link_preview(
    title: str | None = None,
    description: str | None = None,
    image: str | None = None,
) -> str:
    """Render the Open Graph preview document for a link."""
    return PREVIEW_TEMPLATE.render(
        title=title or DEFAULT_TITLE,
        description=description or DEFAULT_DESCRIPTION,
        image=image or DEFAULT_IMAGE,
    )
