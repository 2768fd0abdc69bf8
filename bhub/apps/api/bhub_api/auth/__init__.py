"""Identity and session handling."""
