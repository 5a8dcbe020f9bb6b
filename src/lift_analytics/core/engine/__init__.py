"""Mutation engine and config loading for lift-analytics."""
