"""Pydantic schemas for requests and read-models."""
