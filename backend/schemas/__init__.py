"""Pydantic schemas for change lists and API payloads."""
