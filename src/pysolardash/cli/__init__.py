"""Command line tools for pysolardash."""
