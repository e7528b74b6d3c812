"""Completion provider for at (``@``) mentions.

Returns handles such as team members and agents when the user types ``@``
followed by a prefix.
"""


class MentionProvider:
    """Provide completions for ``@`` mentions.

    Callable that receives the typed prefix after ``@`` and returns the
    handles starting with it.
    """

    icon = "📎 "

    def __init__(self, handles=None):
        self.handles = list(handles) if handles is not None else [
            "alice",
            "alberto",
            "bob",
            "carol",
            "agent:planner",
            "agent:executor",
        ]

    def __call__(self, prefix: str) -> list[str]:
        """Return handles matching *prefix*.

        Args:
            prefix: Text typed after the ``@`` trigger.

        Returns:
            Matching handles, in their configured order.
        """
        return [handle for handle in self.handles if handle.startswith(prefix)]
