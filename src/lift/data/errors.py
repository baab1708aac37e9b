"""Custom exceptions for story loading and parsing."""


class StoryError(Exception):
    """Base exception for story construction failures."""


class StoryLoadError(StoryError):
    """Raised when a story source file is missing or unreadable."""


class PageParseError(StoryError):
    """Raised when a page body fails to parse."""

    def __init__(self, page: str, line: int, message: str) -> None:
        super().__init__(f"Parsing error on page '{page}', line {line}:\n{message}")
        self.page = page
        self.line = line
        self.message = message


class DuplicatePageError(StoryError):
    """Raised when two headers share the same page title."""

    def __init__(self, page: str, line: int) -> None:
        super().__init__(f"Duplicate page '{page}' on line {line}")
        self.page = page
        self.line = line


class ContentError(Exception):
    """Located failure raised by the page-body parser."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset


class ExpressionSyntaxError(Exception):
    """Raised when expression or template source cannot be parsed."""

    def __init__(self, message: str, offset: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset


class ExpressionError(Exception):
    """Raised when a parsed expression cannot be evaluated."""
