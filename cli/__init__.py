"""Command line entrypoints for rangetree."""
