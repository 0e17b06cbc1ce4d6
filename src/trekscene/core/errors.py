"""
Error taxonomy.

Three failure kinds can stop a scene build:
- `TransportError`: fetching a source failed (network, HTTP status, body is not JSON).
- `MalformedInputError`: a payload lacks a required geographic field or it is not numeric.
- `DataIntegrityError`: the DEM altitude grid disagrees with its declared resolution.

The pipeline wraps whichever of these occurs into one terminal `SceneBuildError`
carrying the stage name, so callers only have to handle a single type.
"""

from __future__ import annotations


class TrekSceneError(Exception):
    """Base class for all errors raised by trekscene."""


class TransportError(TrekSceneError):
    """A source could not be fetched or decoded as JSON."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class MalformedInputError(TrekSceneError, ValueError):
    """A required field is missing or has the wrong type."""


class DataIntegrityError(TrekSceneError):
    """Grid dimensions do not match the declared resolution."""

    def __init__(self, expected: tuple[int, int], actual: tuple[int, int], detail: str = ""):
        message = (
            f"altitude grid is {actual[0]}x{actual[1]} (rows x cols) "
            f"but resolution declares {expected[0]}x{expected[1]}"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class SceneBuildError(TrekSceneError):
    """Terminal pipeline failure, tagged with the stage that failed."""

    def __init__(self, stage: str, cause: BaseException | None = None, message: str | None = None):
        text = message or (f"{type(cause).__name__}: {cause}" if cause is not None else "failed")
        super().__init__(f"scene build failed at stage '{stage}': {text}")
        self.stage = stage
        self.cause = cause


class SceneBuildCancelled(SceneBuildError):
    """The pipeline was torn down before reaching READY."""

    def __init__(self, stage: str):
        super().__init__(stage, message="cancelled")
