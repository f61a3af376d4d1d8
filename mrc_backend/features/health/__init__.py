"""Reference URL health verification."""
from .status import migration_status
from .verifier import HealthVerdict, UrlHealthVerifier, classify_health

__all__ = ["HealthVerdict", "UrlHealthVerifier", "classify_health", "migration_status"]
