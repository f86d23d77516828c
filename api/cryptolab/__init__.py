"""Content API of the cryptography research group."""
