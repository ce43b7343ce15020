"""
Filename pattern matching.

Queries are deliberately simple and case-insensitive:

- ``*.ext``  matches names ending in ``.ext``
- ``.suffix`` (no spaces) matches names ending in ``.suffix``
- anything else is a plain substring match

There is no glob engine behind this; ``*`` anywhere other than a leading
``*.`` is a literal character.
"""


def matches(filename: str, query: str) -> bool:
    """
    Check whether a filename matches a search query.

    Args:
        filename: Name of the entry (final path component)
        query: Search query text

    Returns:
        True if the filename matches the query
    """
    filename_lower = filename.lower()
    query_lower = query.lower()

    if query_lower.startswith('*.'):
        # Keep the dot: "*.pdf" matches the suffix ".pdf"
        return filename_lower.endswith(query_lower[1:])

    if query_lower.startswith('.') and ' ' not in query_lower:
        return filename_lower.endswith(query_lower)

    return query_lower in filename_lower


def is_hidden(filename: str) -> bool:
    """Check whether a name is hidden (dot-prefixed)."""
    return filename.startswith('.')
