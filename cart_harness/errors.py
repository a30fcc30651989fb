"""Error taxonomy for the cart harness.

Nothing here is retried. Every error propagates to the scenario boundary in
the runner, which records it as a failure (assertion) or an error (setup).
"""

from __future__ import annotations

from typing import Any, Optional


class HarnessError(Exception):
    """Base class for harness setup and contract errors."""


class ParseError(HarnessError):
    """Numeric text could not be parsed into a safe integer."""

    def __init__(self, context: str, text: Optional[str]):
        self.context = context
        self.text = text
        super().__init__(f"Failed to parse {context} from {text!r}")


class MissingAttributeError(HarnessError):
    """A DOM attribute the storefront contract relies on is absent."""

    def __init__(self, attribute: str, where: str = "catalog item"):
        self.attribute = attribute
        self.where = where
        super().__init__(f"Attribute '{attribute}' not found on {where}")


class PreconditionError(HarnessError):
    """A scenario precondition is not met."""


class NotFoundError(PreconditionError):
    """No catalog product matches the requested criterion."""

    def __init__(self, criterion: str):
        self.criterion = criterion
        super().__init__(f"Not found product with {criterion}")


class InsufficientStockError(PreconditionError):
    def __init__(self, requested: int, max_available: int):
        self.requested = requested
        self.max_available = max_available
        super().__init__(
            f"Failed to find product with enough stock: requested {requested}, "
            f"max available {max_available}"
        )


class EmptyCatalogError(PreconditionError):
    def __init__(self, selector: str = ""):
        self.selector = selector
        super().__init__(f"Catalog is empty (selector: {selector!r})")


class CartResetError(PreconditionError):
    """The direct cart-clear request did not return a 2xx status."""

    def __init__(self, status: int, url: str):
        self.status = status
        self.url = url
        super().__init__(f"Cart clear request to {url} failed with status {status}")


class MissingCsrfTokenError(HarnessError):
    def __init__(self, url: str = ""):
        self.url = url
        super().__init__(f"No csrf-token meta tag found on page {url}".rstrip())


class LoginError(HarnessError):
    """Authentication flow failed or was already attempted for a worker."""


class ScenarioStateError(HarnessError):
    """Storefront operation called from a state that does not allow it."""


class VerificationError(AssertionError):
    """Observed UI state does not match the oracle."""

    def __init__(self, what: str, expected: Any, observed: Any):
        self.what = what
        self.expected = expected
        self.observed = observed
        super().__init__(f"{what}: expected {expected!r}, observed {observed!r}")
