# /*
# Copyright 2026 The Cluster Curator Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Error taxonomy for a curation attempt.

Every error halts the current invocation. Only ``ConflictError`` is retried,
and only inside the status recorder; resumption across invocations relies on
the state persisted on the ClusterCurator resource.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class CuratorError(Exception):
    """Base exception for cluster_curator."""


class UsageError(CuratorError):
    """Bad command line input, raised before any resource access."""


class ValidationError(CuratorError):
    """The curator or the environment is missing a required value."""


class NotFoundError(CuratorError):
    """A resource the curation depends on does not exist."""


class ConflictError(CuratorError):
    """A write lost a race against a concurrent update of the same resource."""


class PlatformError(CuratorError):
    """An external platform reported failure (job error, Failed condition, join denied)."""


class KubeApiError(CuratorError):
    """Any other Kubernetes API failure."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PollTimeoutError(CuratorError):
    """A poll loop passed its configured deadline."""


class PollCancelledError(CuratorError):
    """A poll loop was stopped by the cancellation signal."""


def model_validation_error(subject: str, err: PydanticValidationError) -> ValidationError:
    """Flatten a pydantic validation failure into one descriptive ValidationError."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in err.errors()
    )
    return ValidationError(f"{subject} is invalid: {details}")
