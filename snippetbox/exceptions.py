"""
Snippetbox — Custom Exception Hierarchy
========================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return plain-text or redirect responses with the right status code.
Who:   Raised by services and dependencies; caught by handlers or by routes.

Exception Hierarchy:
    SnippetboxError (base)
    ├── NotFoundError              → 404 Not Found
    ├── InvalidCredentialsError    → handled by routes as a form error
    ├── DuplicateEmailError        → handled by routes as a form error
    ├── FormDecodeError            → 400 Bad Request
    ├── CSRFError                  → 400 Bad Request
    ├── AuthenticationRequired     → 303 See Other (to the login page)
    └── DatabaseError              → 500 Internal Server Error

    Client errors (4xx) never carry internal detail in the response body.
    Server errors are logged with their context and rendered generically.
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """
    Base exception for all Snippetbox application errors.

    Attributes:
        message:  Human-readable description (safe to log)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(SnippetboxError):
    """
    Raised when a requested record does not exist.

    SQLAlchemy returns None for missing rows; services convert that into this
    exception so routes can either let the global handler answer 404 or
    react themselves (account view redirects to the login page instead).
    Expired snippets are reported the same way as missing ones.
    """

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"No matching {resource} found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InvalidCredentialsError(SnippetboxError):
    """Email unknown or password wrong. Callers cannot tell the two cases apart."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials", context=context)


class DuplicateEmailError(SnippetboxError):
    """Signup with an email address that already belongs to a user."""

    def __init__(self, email: str = "", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if email:
            ctx["email"] = email
        super().__init__(message="Duplicate email", context=ctx)


class FormDecodeError(SnippetboxError):
    """
    Raised when a posted form cannot be decoded into its form model.

    What:    The client sent a value of the wrong type (e.g. `expires=abc`).
    HTTP:    400 Bad Request

    Unlike validation failures (blank fields, bad lengths) this is not
    something a browser using our own forms can produce, so there is no
    form to re-render.
    """

    def __init__(self, message: str = "Malformed form data", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class CSRFError(SnippetboxError):
    """Missing or mismatched CSRF token on an unsafe request. HTTP 400."""

    def __init__(self, message: str = "CSRF token missing or incorrect", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class AuthenticationRequired(SnippetboxError):
    """
    Raised by the route-protection dependency for anonymous requests.

    The handler answers with a 303 redirect to `login_url`; the requested
    path has already been stored in the session by then.
    """

    def __init__(self, login_url: str = "/user/login", context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Authentication required", context=context)
        self.login_url = login_url


class DatabaseError(SnippetboxError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error
    The message returned to the client is always generic; the context
    (operation, error type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
