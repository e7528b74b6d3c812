"""Completion provider for hash (``#``) tags.

Returns tags such as ``bug``, ``feature`` or ``Release`` when the user types
``#`` followed by a prefix.  Matching is case-insensitive.
"""


class TagProvider:
    """Provide completions for ``#`` tags.

    Callable that receives the typed prefix after ``#`` and returns matching
    tags.  Comparison is case-insensitive.
    """

    icon = "🏷 "

    def __init__(self, tags=None):
        self.tags = list(tags) if tags is not None else [
            "bug",
            "feature",
            "docs",
            "Release",
            "question",
        ]

    def __call__(self, prefix: str) -> list[str]:
        """Return tags matching *prefix* (case-insensitive).

        Args:
            prefix: Text typed after the ``#`` trigger.
        """
        return [tag for tag in self.tags if tag.lower().startswith(prefix.lower())]
