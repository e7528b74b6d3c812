"""Completion provider for colon (``:``) emoji shortcodes."""

EMOJI = {
    "smile": "😄",
    "sweat_smile": "😅",
    "heart": "❤️",
    "thumbsup": "👍",
    "tada": "🎉",
    "rocket": "🚀",
    "eyes": "👀",
}


class EmojiProvider:
    """Provide completions for ``:`` emoji shortcodes.

    Accepting a shortcode inserts the emoji itself, so the trigger is
    usually removed on accept (see :attr:`keep_trigger_character`).
    """

    icon = "⌨️ "
    keep_trigger_character = False

    def __call__(self, prefix: str) -> list[str]:
        return [name for name in EMOJI if name.startswith(prefix)]

    def resolve(self, name: str) -> str:
        """Return the text inserted for shortcode *name*."""
        return EMOJI.get(name, f":{name}:")
