"""Dispositions (disposiciones)."""
