"""Domain-specific exceptions"""

from typing import List


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class TrancheNotFoundError(DomainException):
    """No tranche exists for the requested id"""

    def __init__(self, tranche_id):
        super().__init__(f"Tranche not found: {tranche_id}")
        self.tranche_id = tranche_id


class ConfigurationError(DomainException):
    """Tranche/project financial configuration cannot be used for a schedule"""

    def __init__(self, message: str, missing_params: List[str] | None = None):
        super().__init__(message)
        self.missing_params = missing_params or []


class MissingTrancheParametersError(ConfigurationError):
    """Required financial parameters are absent from both tranche and project"""

    def __init__(self, missing_params: List[str]):
        super().__init__(
            f"Missing required parameters: {', '.join(missing_params)}",
            missing_params=missing_params,
        )


class UnknownFrequencyError(ConfigurationError):
    """Coupon frequency is not recognised and fallback is disabled"""

    def __init__(self, frequency: str):
        super().__init__(f"Unknown frequency: {frequency}", missing_params=["periodicite_coupons"])
        self.frequency = frequency


class InvalidTrancheParametersError(ConfigurationError):
    """Parameters are present but unusable, e.g. a non-positive duration"""

    def __init__(self, invalid_params: List[str]):
        super().__init__(
            f"Invalid parameters: {', '.join(invalid_params)}",
            missing_params=invalid_params,
        )
