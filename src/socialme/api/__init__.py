"""HTTP API for SocialMe."""
