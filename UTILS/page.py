# page.py
from pathlib import Path
from typing import Optional

# Jinja2 pour les gabarits
from jinja2 import Environment, FileSystemLoader, select_autoescape

from MAP_GENERATION.results_map import RenderPlan

TEMPLATES_DIR = Path(__file__).parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

CGI_HEADER = "Content-Type: text/html\r\n\r\n"


def render_page(title: str, plan: RenderPlan) -> str:
    """
    Squelette HTML fixe : <head> (charset + title + contenu additionnel tel quel)
    et <body> (attribut optionnel + contenu tel quel).
    """
    tpl = env.get_template("page.html")
    return tpl.render(
        title=title,
        additional_head=plan.additional_head or "",
        body_attribute=plan.body_attribute,
        body_content=plan.body_content,
    )


def render_error_page(message: str, title: Optional[str] = "error") -> str:
    body = env.get_template("error.html").render(message=message).strip()
    return render_page(title, RenderPlan(body_content=body))
