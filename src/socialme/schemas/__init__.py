"""Pydantic schemas for the SocialMe API."""
