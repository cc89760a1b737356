"""Exception hierarchy for the brand generation pipeline."""

from enum import Enum
from typing import Optional


class BrandscapeError(Exception):
    """Base class for all Brandscape errors."""


class SourceUnavailable(BrandscapeError):
    """A single context, search or registry source failed.

    Always recovered locally: the caller records a warning and carries on with the
    remaining sources.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class ScreeningUnavailable(SourceUnavailable):
    """A domain, trademark or image screening source is unconfigured or down."""


class EmbeddingUnavailable(BrandscapeError):
    """The embedding backend failed or returned vectors that do not line up with the input."""


class GenerationBackendError(BrandscapeError):
    """The generative backend round trip failed."""


class ArtifactStorageError(BrandscapeError):
    """A generated artifact could not be persisted."""


class ParseErrorKind(str, Enum):
    NO_JSON_FOUND = "no_json_found"
    FORMAT_MISMATCH = "format_mismatch"


class ParseError(BrandscapeError):
    """A generation response did not match the required output contract."""

    def __init__(self, kind: ParseErrorKind, message: str):
        self.kind = kind
        super().__init__(f"{kind.value}: {message}")


class GenerationFailed(BrandscapeError):
    """All recovery for a generation stage is exhausted.

    Carries the prompt that was sent so the user can retry without re-entering it,
    and the path of the raw output dump when one was written.
    """

    def __init__(
        self,
        stage: str,
        message: str,
        prompt: Optional[str] = None,
        dump_path: Optional[str] = None
    ):
        self.stage = stage
        self.prompt = prompt
        self.dump_path = dump_path
        super().__init__(f"{stage} generation failed: {message}")


class InvalidTransition(BrandscapeError):
    """A pipeline operation was called before its preceding stage completed."""
