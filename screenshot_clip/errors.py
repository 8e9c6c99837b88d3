"""
Exceptions raised by the screenshot pipeline.

Input errors are raised before any browser is launched. Measurement problems
(DegenerateMeasurement, ContainerSelectorTimeout) are recovered inside the
pipeline. Load and capture failures are fatal to the run.
"""

from pathlib import Path


class ScreenshotError(Exception):
    """Base class for all screenshot pipeline errors."""


class MissingArgument(ScreenshotError):
    def __init__(self, name: str = "html_path"):
        self.name = name
        super().__init__(f"Missing required argument: {name}")


class InputFileNotFound(ScreenshotError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"HTML file not found: {path}")


class ContainerSelectorTimeout(ScreenshotError):
    def __init__(self, selector: str, timeout_ms: int):
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(f"Container '{selector}' did not appear within {timeout_ms}ms")


class DegenerateMeasurement(ScreenshotError):
    """No element inside the container produced a usable rectangle."""


class DocumentLoadError(ScreenshotError):
    """Navigation to the document failed."""


class CaptureFailure(ScreenshotError):
    """The screenshot could not be taken or written."""


class InvalidSelector(ScreenshotError):
    def __init__(self, selector: str, reason: str):
        self.selector = selector
        super().__init__(f"Invalid container selector '{selector}': {reason}")


class ConfigurationError(ScreenshotError):
    """Configuration values failed validation."""


class TemplateError(ScreenshotError):
    """The HTML template could not be read or rendered."""
