# ------------------------------------------------------------
# Module: visual_editor/core/errors.py
# Purpose: Typed exceptions for failures that cross the editor's boundaries.
# ------------------------------------------------------------

"""Exception types for the visual editor backend.

Structural and scope problems are *values* (see `tree.validation` and
`scope.resolver`) and are never raised. Exceptions are reserved for
external failures and for rejected direct edits.

Responsibilities
----------------
- Provide a base `VisualEditorError` for catch-all handling.
- Surface evaluation-engine and storage failures as `ExternalError` subclasses.
- Surface rejected sibling edge names as `EdgeNameError`.
- Surface unknown documents/nodes as `NotFoundError`.
"""


class VisualEditorError(Exception):
    """Base class for editor backend failures."""


class ExternalError(VisualEditorError):
    """A collaborator outside this process failed; the request may be retried."""


class EvaluationEngineError(ExternalError):
    """Raised when the evaluation engine fails or returns a malformed response."""


class PersistenceError(ExternalError):
    """Raised on snapshot store read/write failures."""


class EdgeNameError(VisualEditorError):
    """Raised when a sibling edge name is already taken or no name is left."""

    def __init__(self, message: str, *, source: str, name: str | None = None):
        super().__init__(message)
        self.source = source
        self.name = name


class NotFoundError(VisualEditorError):
    """Raised when a document, node or edge id is unknown."""
