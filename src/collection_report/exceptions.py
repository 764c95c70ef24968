"""
Custom exceptions for collection run reporting.
"""


class ReportError(Exception):
    """Base exception for report generation errors."""

    pass


class TemplateLoadError(ReportError):
    """Raised when the report template cannot be read."""

    def __init__(self, path: str, original_error: Exception):
        self.path = path
        self.original_error = original_error
        super().__init__(f"Failed to load report template {path}: {original_error}")


class ReportRenderError(ReportError):
    """Raised when a report model cannot be rendered."""

    def __init__(self, report_format: str, error_message: str):
        self.report_format = report_format
        self.error_message = error_message
        super().__init__(f"Failed to render {report_format} report: {error_message}")


class RunDataError(ReportError):
    """Raised when exported run data is malformed."""

    def __init__(self, message: str, source: str = "<run>"):
        self.source = source
        self.message = message
        super().__init__(f"Invalid run data in {source}: {message}")
