"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ContractViolationError(DomainException):
    """Caller passed input that breaks a function's strict contract"""

    pass


class InvalidTransactionDataError(ContractViolationError):
    """Transaction collection is not a list or holds unusable entries"""

    pass


class InvalidOpeningBalanceError(ContractViolationError):
    """Opening balance is missing or not a real number"""

    pass
