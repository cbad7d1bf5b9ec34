"""User profile domain."""
