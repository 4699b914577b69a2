"""Command groups registered on the main parser."""
