"""Shrink packaged runtime bundles by pruning archives and foreign native libraries."""

__version__ = "0.1.0"
