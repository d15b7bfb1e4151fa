"""Template rendering for outgoing emails."""

import html
import re

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def render_template(
    subject: str,
    body: str,
    variables: dict[str, str],
    html_variables: dict[str, str] | None = None,
) -> tuple[str, str]:
    """
    Render a template with variable substitution.

    Variables in format {{variable_name}} are replaced with values.
    Missing variables are replaced with empty string.
    Values are HTML-escaped in the body; html_variables are trusted fragments
    inserted verbatim. The subject is plain text and never escaped.

    Returns (rendered_subject, rendered_body).
    """
    trusted = html_variables or {}

    def replace_subject_var(match: re.Match) -> str:
        return variables.get(match.group(1), "")

    def replace_body_var(match: re.Match) -> str:
        var_name = match.group(1)
        if var_name in trusted:
            return trusted[var_name]
        return html.escape(variables.get(var_name, ""))

    rendered_subject = VARIABLE_PATTERN.sub(replace_subject_var, subject)
    rendered_body = VARIABLE_PATTERN.sub(replace_body_var, body)
    return rendered_subject, rendered_body
