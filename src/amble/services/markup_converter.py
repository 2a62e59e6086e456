"""Markdown and HTML transforms (Markdown -> HTML document, HTML -> plain text)."""
import html
import re

import markdown

_tag_pattern = re.compile(r'<[^>]*>')
_whitespace_pattern = re.compile(r'\s+')

_MARKDOWN_EXTENSIONS = ['fenced_code', 'tables']

HTML_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }}
    code {{ background: #f4f4f4; padding: 2px 6px; border-radius: 3px; }}
    pre {{ background: #f4f4f4; padding: 10px; border-radius: 5px; overflow-x: auto; }}
  </style>
</head>
<body>
{body}
</body>
</html>
"""


def render_markdown(text: str) -> str:
    """Render Markdown to an HTML fragment."""
    return markdown.markdown(text, extensions=_MARKDOWN_EXTENSIONS)


def markdown_to_html_document(text: str, title: str) -> str:
    return HTML_DOCUMENT_TEMPLATE.format(title=html.escape(title), body=render_markdown(text))


def html_to_text(markup: str) -> str:
    """Strip tags and collapse whitespace. Lossy: this is not an HTML parser."""
    if not markup:
        return ''
    text = _tag_pattern.sub(' ', markup)
    text = html.unescape(text)
    return _whitespace_pattern.sub(' ', text).strip()


def markdown_to_text(text: str) -> str:
    return html_to_text(render_markdown(text))
