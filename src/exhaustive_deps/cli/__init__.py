"""Command line interface for exhaustive-deps."""
