"""
Collection run reports: aggregate runner telemetry into a grouped report model.
"""

__version__ = "1.0.0"

from .assembler import assemble_groups
from .events import RunEmitter
from .report import build_report_model
from .reporter import HTMLExtraReporter
from .results import classify_assertion, reduce_executions

__all__ = [
    "HTMLExtraReporter",
    "RunEmitter",
    "assemble_groups",
    "build_report_model",
    "classify_assertion",
    "reduce_executions",
]
