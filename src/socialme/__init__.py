"""SocialMe Stage: consistency and lifecycle engine for the SocialMe entity graph."""
