from .reporting import (
    customs_results_to_dataframe,
    operation_counts,
    operations_to_dataframe,
    zones_to_dataframe,
)
from .terminal_service import TerminalService

__all__ = [
    "TerminalService",
    "customs_results_to_dataframe",
    "operation_counts",
    "operations_to_dataframe",
    "zones_to_dataframe",
]
