"""
JSON reporter for run report models.
"""

import json

from ..models import ReportModel
from .base import ReportGenerator


class JSONReporter(ReportGenerator):
    """Generate JSON format for programmatic analysis."""

    default_filename = "newman-run-report.json"

    def generate(self, model: ReportModel) -> str:
        """Generate JSON report."""
        return json.dumps(model.to_dict(), indent=2, default=str)
