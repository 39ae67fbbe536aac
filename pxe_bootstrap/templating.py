from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import jinja2

from .errors import RenderError

logger = logging.getLogger(__name__)

PACKAGE_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def template_env(templates_dir: Optional[str] = None) -> jinja2.Environment:
    """Jinja2 environment; templates in ``templates_dir`` shadow the packaged ones."""

    search: List[str] = []
    if templates_dir:
        search.append(str(templates_dir))
    search.append(str(PACKAGE_TEMPLATES_DIR))

    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(search),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )


def render(env: jinja2.Environment, template_name: str, context: Dict[str, Any]) -> str:
    try:
        return env.get_template(template_name).render(**context)
    except jinja2.TemplateNotFound as e:
        raise RenderError(f"template not found: {e.name}") from e
    except jinja2.TemplateSyntaxError as e:
        raise RenderError(f"failed to parse template {e.filename or template_name}:{e.lineno}: {e.message}") from e
    except jinja2.TemplateError as e:
        raise RenderError(f"failed to render template {template_name}: {e}") from e


def write_atomic(dest: Path, content: str) -> None:
    """Replace ``dest`` in a single rename so readers never see a partial file."""

    dest = Path(dest)
    tmp = dest.with_name(f".{dest.name}.tmp")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, dest)
    except OSError as e:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise RenderError(f"failed to write {dest}: {e}") from e


def render_to_file(env: jinja2.Environment, template_name: str, dest: Path, context: Dict[str, Any]) -> Path:
    write_atomic(dest, render(env, template_name, context))
    logger.debug("Rendered %s to %s", template_name, dest)
    return Path(dest)
