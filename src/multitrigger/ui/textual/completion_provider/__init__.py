"""Demo completion providers keyed by the name used in the configuration."""

from multitrigger.ui.textual.completion_provider.at_provider import MentionProvider
from multitrigger.ui.textual.completion_provider.colon_provider import EmojiProvider
from multitrigger.ui.textual.completion_provider.hash_provider import TagProvider
from multitrigger.ui.textual.completion_provider.slash_provider import SlashCommandProvider

PROVIDERS = {
    "mention": MentionProvider,
    "tag": TagProvider,
    "emoji": EmojiProvider,
    "slash": SlashCommandProvider,
}
