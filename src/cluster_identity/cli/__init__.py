"""Command-line interface for cluster-identity."""
