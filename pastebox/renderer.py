"""HTML rendering for the paste pages.

This module builds the upload form and the paste view pages with proper
character escaping.
"""

import html

_STYLE = """
        body {
            margin: 0;
            padding: 20px;
            font-family: 'Courier New', Courier, monospace;
            background-color: #f5f5f5;
        }
        pre, textarea {
            box-sizing: border-box;
            width: 100%;
            margin: 0;
            padding: 20px;
            background-color: white;
            border: 1px solid #ddd;
            border-radius: 4px;
            white-space: pre-wrap;
            word-wrap: break-word;
        }
        .links {
            margin-bottom: 10px;
            padding: 10px;
            background-color: white;
            border: 1px solid #ddd;
            border-radius: 4px;
            font-size: 0.9em;
        }"""

# (ISO 8601 duration, label) choices offered by the upload form
EXPIRY_CHOICES = [
    ("PT5M", "5 minutes"),
    ("PT1H", "1 hour"),
    ("P1D", "1 day"),
    ("P1W", "1 week"),
    ("P1M", "1 month"),
    ("", "Never"),
]

LANGUAGE_CHOICES = [
    ("", "Plain text"),
    ("url", "Short URL"),
    ("python", "Python"),
    ("go", "Go"),
    ("javascript", "JavaScript"),
]


class Renderer:
    """Renders the HTML pages of the paste service."""

    def __init__(self, home: str = "/"):
        """Initialize renderer.

        Args:
            home: Link target of the "new paste" links
        """
        self.home = home or "/"

    def render_index(self, title: str = "pastebox", body: str = "") -> tuple[str, str]:
        """Render the upload form, optionally prefilled with content.

        Args:
            title: Page title
            body: Initial textarea content (used when cloning a paste)

        Returns:
            Tuple of (html_content, content_type)
        """
        expiry_options = "\n".join(
            f'            <option value="{value}">{label}</option>'
            for value, label in EXPIRY_CHOICES
        )
        language_options = "\n".join(
            f'            <option value="{value}">{label}</option>'
            for value, label in LANGUAGE_CHOICES
        )
        html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{html.escape(title)}</title>
    <style>{_STYLE}
    </style>
</head>
<body>
    <form method="post" action="{html.escape(self.home)}">
        <textarea name="p" rows="25">{html.escape(body)}</textarea>
        <select name="expiry">
{expiry_options}
        </select>
        <select name="lang">
{language_options}
        </select>
        <button type="submit">Paste</button>
    </form>
</body>
</html>"""

        return html_content, "text/html; charset=utf-8"

    def render_paste(
        self, paste_id: str, content: str, language: str = ""
    ) -> tuple[str, str]:
        """Render a paste with raw, download and clone links.

        Args:
            paste_id: Paste identifier
            content: Unescaped paste content
            language: Content type hint stored with the paste

        Returns:
            Tuple of (html_content, content_type)
        """
        escaped_id = html.escape(paste_id)
        escaped_content = html.escape(content, quote=True)
        language_class = f' class="language-{html.escape(language)}"' if language else ""

        html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{escaped_id}</title>
    <style>{_STYLE}
    </style>
</head>
<body>
    <div class="links">
        <a href="{html.escape(self.home)}">New</a> |
        <a href="/{escaped_id}/raw">Raw</a> |
        <a href="/{escaped_id}/download">Download</a> |
        <a href="/{escaped_id}/clone">Clone</a>
    </div>
    <pre{language_class}>{escaped_content}</pre>
</body>
</html>"""

        return html_content, "text/html; charset=utf-8"
