"""Wiki-link extraction from article content.

Two link forms are recognised:

- Double-bracket: ``[[slug]]``
- Markdown: ``[text](slug)`` or ``[text](/wiki/slug)``

Markdown links pointing at ``http://``, ``https://`` or ``mailto:`` targets
are external and ignored.  Double-bracket links are never filtered.
"""

from __future__ import annotations

import re

WIKI_LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((?:/wiki/)?([^)]+)\)")

EXTERNAL_PREFIXES = ("http://", "https://", "mailto:")

# Whitespace and line terminators trimmed from captured slugs.  Unlike a bare
# str.strip() this includes U+FEFF and excludes U+001C..U+001F and U+0085.
TRIM_CHARS = (
    "\t\n\v\f\r \u00a0\u1680\u2028\u2029\u202f\u205f\u3000\ufeff"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
)


def extract_wiki_links(content: str) -> list[str]:
    """Return the candidate slugs referenced by *content*.

    Double-bracket matches come first, then markdown matches, each in
    document order.  Duplicates are dropped keeping the first occurrence.

    Example:
        >>> extract_wiki_links("See [[intro]], [setup](/wiki/setup) and [[intro]].")
        ['intro', 'setup']
    """
    if not content:
        return []

    links = [m.group(1).strip(TRIM_CHARS) for m in WIKI_LINK_PATTERN.finditer(content)]

    for match in MARKDOWN_LINK_PATTERN.finditer(content):
        href = match.group(2).strip(TRIM_CHARS)
        if not href.startswith(EXTERNAL_PREFIXES):
            links.append(href)

    return list(dict.fromkeys(links))
