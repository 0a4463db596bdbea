"""
Exception types raised by the scraper and the HN client.
"""

from typing import Optional


class HNScraperError(Exception):
    """Base class for every error raised by hn_scraper."""

    message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class ScraperError(HNScraperError):
    """A required element or attribute was missing or unparseable."""

    message = "Failed to parse the content."


class RequestFailure(HNScraperError):
    """The transport failed; the original exception is kept as the cause."""

    message = "The request to Hacker News failed."


class Unauthenticated(HNScraperError):
    message = "You need to be logged in to perform this action."


class AuthenticationError(HNScraperError):
    message = "Login failed. Check your username and password."
