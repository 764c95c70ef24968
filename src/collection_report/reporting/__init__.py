"""
Reporting modules for collection run reports.
"""

from .base import ReportGenerator
from .console import ConsoleReporter
from .html_reporter import HTMLReporter, load_template
from .json_reporter import JSONReporter

__all__ = ["ReportGenerator", "ConsoleReporter", "HTMLReporter", "JSONReporter", "load_template"]
