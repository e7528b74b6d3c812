"""Textual host: :class:`~.trigger_input.TriggerInput`,
:class:`~.suggestion_list.SuggestionList` and the demo
:class:`~.app.MultiTriggerApp`.
"""
