"""Staging2Live backend."""
