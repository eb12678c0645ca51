"""Schemas — pydantic models for favour records and the wire formats around them."""
