"""Core configuration and logging for identitycore."""
