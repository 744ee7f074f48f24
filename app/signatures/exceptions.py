class SignatureRegistryError(ValueError):
    """Raised when a signature table is incomplete or ambiguous."""
