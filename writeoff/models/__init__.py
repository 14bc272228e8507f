from .results import ErrorKind, Result
from .verdict import DeductionVerdict

__all__ = ["DeductionVerdict", "ErrorKind", "Result"]
