"""Parse IAM-style policy documents, match actions and ARNs, and evaluate conditions."""

__version__ = "0.1.0"

__all__ = ["policy", "context", "conditions"]