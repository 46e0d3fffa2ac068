"""Store adapter contract.

Every backend exposes the same verbs; a store that lacks one raises
`UnsupportedOperation` from it instead of omitting the method, so the
orchestrator can route blindly.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import StoreKind, SubmissionRequest


@runtime_checkable
class StoreAdapter(Protocol):
    kind: StoreKind

    def status(self, request: SubmissionRequest) -> Any:
        ...

    def insert(self, request: SubmissionRequest) -> Any:
        ...

    def update(self, request: SubmissionRequest) -> Any:
        ...

    def publish(self, request: SubmissionRequest) -> Any:
        ...

    def sign(self, request: SubmissionRequest) -> Any:
        ...
