"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from ..models import ReportModel


class ReportGenerator(ABC):
    """Base class for rendering a report model."""

    #: File name suggested to the host when no export path is configured
    default_filename = "newman-run-report.txt"

    @abstractmethod
    def generate(self, model: ReportModel) -> str:
        """
        Render a report model.

        Args:
            model: ReportModel for a finished run

        Returns:
            Report as a string
        """
        pass
