"""Bundled port dataset, reference list, and name mappings."""
