"""Wraps rendered report markup in the print document shell."""

from orgdesk.services.report_templates import _env


def render_document(markup, title: str = "Report") -> str:
    """Return a complete HTML document around ``markup``.

    The shell (fonts, table borders, heading sizes, print margins) is the
    same for every report type.  ``markup`` must already be safe HTML; plain
    strings are escaped.
    """
    return _env.get_template("document.html").render(title=title or "Report", body=markup)
