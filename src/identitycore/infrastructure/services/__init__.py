"""Infrastructure services: email delivery and notifications."""
