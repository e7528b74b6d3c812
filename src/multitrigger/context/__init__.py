"""Trigger matching and the autocomplete session coordinator."""
