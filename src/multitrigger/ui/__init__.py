"""User-interface hosts for the autocomplete coordinator."""
