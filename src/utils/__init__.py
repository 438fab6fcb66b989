"""Utilities package for the Bar Catalog application."""
