"""
HTML card templates rendered before capture.

Templates use Handlebars-style tags:
- ``{{key}}`` substitutes a variable
- ``{{#each items}} ... {{/each}}`` repeats a block, the current item is ``{{this}}``
  (fields as ``{{this.name}}``)
- ``{{#if flag}} ... {{else}} ... {{/if}}`` keeps one of two blocks

Block tags are rewritten to Jinja2 statements and the result is rendered by Jinja2
with HTML autoescaping.
"""

import logging
import math
import random
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from jinja2 import TemplateError as JinjaTemplateError

from .config import Config
from .config import config as default_config
from .errors import TemplateError

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.jpg', '.jpeg', '.png', '.gif'}

_BLOCK_TAGS = [
    (re.compile(r"\{\{\s*#each\s+([^}]+?)\s*\}\}"), r"{% for this in \1 %}"),
    (re.compile(r"\{\{\s*/each\s*\}\}"), "{% endfor %}"),
    (re.compile(r"\{\{\s*#if\s+([^}]+?)\s*\}\}"), r"{% if \1 %}"),
    (re.compile(r"\{\{\s*else\s*\}\}"), "{% else %}"),
    (re.compile(r"\{\{\s*/if\s*\}\}"), "{% endif %}"),
]


def convert_block_tags(source: str) -> str:
    """Rewrite each/if/else block tags into Jinja2 statements."""
    for pattern, replacement in _BLOCK_TAGS:
        source = pattern.sub(replacement, source)
    return source


def render_template(source: str, variables: Mapping[str, Any], template_dir: Optional[Path] = None) -> str:
    """
    Render template source with the given variables.

    Unknown variables render as empty strings.

    Raises:
        TemplateError: If the template has a syntax error or fails to render
    """
    env = Environment(
        loader=FileSystemLoader(str(template_dir or Path.cwd())),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )
    try:
        return env.from_string(convert_block_tags(source)).render(**variables)
    except JinjaTemplateError as e:
        raise TemplateError(f"Could not render template: {e}") from e


def generate_template(template_path: Path, variables: Mapping[str, Any], output_path: Path) -> Path:
    """
    Render an HTML template file and write the result.

    Args:
        template_path: Template file
        variables: Values for the template tags
        output_path: HTML file to write (parent directories are created)

    Returns:
        The absolute path of the written HTML file
    """
    template_path = Path(template_path)
    if not template_path.is_file():
        raise TemplateError(f"Template file not found: {template_path}")

    try:
        source = template_path.read_text(encoding='utf-8')
    except OSError as e:
        raise TemplateError(f"Could not read template {template_path}: {e}") from e

    content = render_template(source, variables, template_dir=template_path.parent)

    output_path = Path(output_path).resolve()
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise TemplateError(f"Could not write HTML file {output_path}: {e}") from e

    logger.info("Generated HTML file: %s", output_path)
    return output_path


def random_background(background_dir: Path, rng: Optional[random.Random] = None) -> Optional[Path]:
    """
    Pick a random .jpg/.jpeg/.png/.gif file from a directory.

    Returns:
        Path of the chosen image, or None if the directory is missing or has no images
    """
    background_dir = Path(background_dir)
    if not background_dir.is_dir():
        logger.warning("Background directory does not exist: %s", background_dir)
        return None

    images = sorted(
        entry for entry in background_dir.iterdir()
        if entry.is_file() and entry.suffix.lower() in IMAGE_SUFFIXES
    )
    if not images:
        logger.warning("No background images found in: %s", background_dir)
        return None

    return (rng or random).choice(images)


def icon_position(index: int, total_icons: int, container_width: int, container_height: int) -> Tuple[int, int]:
    """Center of grid cell ``index`` when ``total_icons`` are laid out in a near-square grid."""
    if total_icons <= 0:
        raise ValueError("total_icons must be positive")
    columns = math.ceil(math.sqrt(total_icons))
    rows = math.ceil(total_icons / columns)

    icon_width = container_width // columns
    icon_height = container_height // rows

    col = index % columns
    row = index // columns
    return col * icon_width + icon_width // 2, row * icon_height + icon_height // 2


def generate_card(variables: Mapping[str, Any], output_path: Path, config: Optional[Config] = None,
                  rng: Optional[random.Random] = None) -> Path:
    """
    Render the configured card template into an HTML file ready for capture.

    The template is ``STYLE_DIR/TEMPLATE_NAME``. When ``bg_image`` is not given,
    a random background from ``BACKGROUND_DIR`` (default ``STYLE_DIR/backgrounds``)
    is filled in as a file:// URL, or an empty string if there is none.
    """
    cfg = config or default_config
    style_dir = Path(cfg.STYLE_DIR)
    values = dict(variables)
    if 'bg_image' not in values:
        background = random_background(Path(cfg.BACKGROUND_DIR) if cfg.BACKGROUND_DIR else style_dir / 'backgrounds',
                                       rng=rng)
        values['bg_image'] = background.resolve().as_uri() if background else ''
    return generate_template(style_dir / cfg.TEMPLATE_NAME, values, output_path)
