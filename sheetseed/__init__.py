from .builder import ImportBuilder, ImportPlan, excel
from .errors import AppError
from .generators import date_sequence, sequence, string_sequence
from .operations import Binder, Insert, OperationSequence

__all__ = [
    "AppError",
    "Binder",
    "ImportBuilder",
    "ImportPlan",
    "Insert",
    "OperationSequence",
    "date_sequence",
    "excel",
    "sequence",
    "string_sequence",
]
