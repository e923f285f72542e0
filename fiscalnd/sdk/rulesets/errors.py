"""Ruleset faults.

These are the only errors the engine raises on its own. Both are fatal for
the requested version and propagate unmodified; callers translate the
``code`` into whatever their transport needs.
"""

from typing import Optional


class RulesetError(Exception):
    """Base class for ruleset loading faults."""

    code = "RULESET_ERROR"

    def __init__(self, message: str, ruleset_id: Optional[str] = None):
        super().__init__(message)
        self.ruleset_id = ruleset_id


class RulesetNotFound(RulesetError):
    """Raised when a ruleset version is not in the index or its file is missing."""

    code = "RULESET_NOT_FOUND"


class RulesetSignatureInvalid(RulesetError):
    """Raised when a ruleset's signature does not verify against its payload."""

    code = "RULESET_SIGNATURE_INVALID"

    def __init__(self, ruleset_id: str):
        super().__init__(f"Ruleset signature mismatch for {ruleset_id}", ruleset_id=ruleset_id)
