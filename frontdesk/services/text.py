import html

import bleach


def clean_text(value) -> str:
    """Plain text from user input: every tag is stripped, characters like ``&`` and ``<`` are kept as typed."""
    return html.unescape(bleach.clean(str(value or '').strip(), tags=set(), strip=True)).strip()
