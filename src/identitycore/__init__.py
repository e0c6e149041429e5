"""identitycore - identity and credential-lifecycle service.

Authenticates users, issues and refreshes bearer session tokens, and manages
single-use email verification and password reset tokens.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
