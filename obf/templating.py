from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape
from .config import OBF_DEFAULT_ADDRESS, settings

env = Environment(
    loader=PackageLoader("obf", "templates"),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)

# One-line strings shown as message subjects.
STRINGS = {
    "expiringcertificatesubject": "Open Badge Factory certificate is about to expire",
    "certificateerrorsubject": "Open Badge Factory rejected the client certificate",
    "defaultemailsubject": "You have earned a badge",
}


def get_string(key: str) -> str:
    return STRINGS[key]


def render_template(template_name: str, context: dict) -> str:
    # Standard context variables, provided context takes precedence
    standard_context = {
        "app_name": settings.APP_NAME,
        "obfurl": OBF_DEFAULT_ADDRESS,
    }
    full_context = {**standard_context, **context}
    return env.get_template(template_name).render(full_context).strip()
