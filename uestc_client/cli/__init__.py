"""Command line interface for uestc_client."""
