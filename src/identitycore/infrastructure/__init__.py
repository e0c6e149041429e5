"""Infrastructure layer: persistence, token signing, email delivery and HTTP API."""
