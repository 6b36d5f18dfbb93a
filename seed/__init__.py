"""Baseline reference data for a fresh POS database."""
