"""Completion provider for slash (``/``) commands.

Returns commands such as ``help``, ``clear`` or ``quit``; the ``/`` trigger
is registered with ``only_at_start`` so commands are only offered as the
first word of the input.
"""


class SlashCommandProvider:
    """Provide completions for ``/`` commands."""

    icon = "⚡ "

    commands = [
        "help",
        "clear",
        "me",
        "shrug",
        "quit",
    ]

    def __call__(self, prefix: str) -> list[str]:
        return [cmd for cmd in self.commands if cmd.startswith(prefix)]
