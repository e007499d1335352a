from __future__ import annotations

from typing import Any


class StudioError(Exception):
    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ConfigurationError(StudioError):
    def __init__(self, detail: str = "model_credentials_missing") -> None:
        super().__init__(detail, status_code=500)


class TransportError(StudioError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, status_code=502)


class EmptyResultError(StudioError):
    def __init__(self, detail: str = "model_empty_response") -> None:
        super().__init__(detail, status_code=502)


class MalformedOutputError(StudioError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"unparseable_model_output:{detail}", status_code=502)


class ImprovementError(StudioError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, status_code=422)


class ActionBusyError(StudioError):
    def __init__(self, action: str) -> None:
        super().__init__(f"action_in_progress:{action}", status_code=409)
        self.action = action


class StaleResultError(StudioError):
    """A whole-document result arrived after the working copy moved on."""

    def __init__(self, action: str, base_revision: int, current_revision: int, result: Any) -> None:
        super().__init__(
            f"stale_result:{action}:{base_revision}->{current_revision}", status_code=409
        )
        self.action = action
        self.base_revision = base_revision
        self.current_revision = current_revision
        self.result = result


class VersionNotFoundError(StudioError):
    def __init__(self, version_id: str) -> None:
        super().__init__(f"version_not_found:{version_id}", status_code=404)


class ProjectNotFoundError(StudioError):
    def __init__(self, project_id: str) -> None:
        super().__init__(f"project_not_found:{project_id}", status_code=404)
