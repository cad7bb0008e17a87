# product_catalog/templating.py

"""
Jinja2 templates and one-shot flash messages.
A flash message is stored in the signed session cookie and shown by the next
page that is rendered, which also clears it.
"""
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
FLASH_SESSION_KEY = "_flash"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def flash(request: Request, message: str, category: str = "success") -> None:
    request.session[FLASH_SESSION_KEY] = {"message": message, "category": category}


def pop_flash(request: Request) -> Optional[Dict[str, str]]:
    return request.session.pop(FLASH_SESSION_KEY, None)


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
):
    """Render `name`, handing it (and clearing) any pending flash message."""
    context = dict(context or {})
    context["flash"] = pop_flash(request)
    return templates.TemplateResponse(
        request, name, context, status_code=status_code
    )
