"""Render the assistant's initial prompts from the bundled Jinja2 templates."""

import importlib.resources

import jinja2


def render_prompt(template_name: str, **kwargs) -> str:
    """Render ``templates/<template_name>`` with the given variables.

    Undefined variables raise jinja2.UndefinedError instead of rendering empty.
    """
    source = (
        importlib.resources.files("checkout.session.templates")
        .joinpath(template_name)
        .read_text(encoding="utf-8")
    )
    template = jinja2.Template(source, undefined=jinja2.StrictUndefined)
    return template.render(**kwargs).strip()
