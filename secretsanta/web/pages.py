from __future__ import annotations

import html

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <link rel="stylesheet" href="/assets/styles.css">
</head>
<body>
  <div id="snowflakes-container"></div>
  <main class="card">
{body}
  </main>
  <script src="/assets/scripts.js"></script>
</body>
</html>
"""


def _page(title: str, body: str) -> str:
    return PAGE_TEMPLATE.format(title=html.escape(title), body=body)


def render_match_page(from_name: str, target: str) -> str:
    body = (
        f"    <h1>Hi, {html.escape(from_name)}!</h1>\n"
        "    <p>You are the Secret Santa of</p>\n"
        f"    <p class=\"target\">{html.escape(target)}</p>\n"
        "    <p class=\"note\">This link works only once. Remember the name before closing the page.</p>"
    )
    return _page("Your Secret Santa match", body)


def render_invalid_page() -> str:
    body = (
        "    <h1>Invalid link</h1>\n"
        "    <p>This link is unknown or has already been used.</p>"
    )
    return _page("Invalid link", body)
