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

"""Fixed-interval polling with an optional deadline and cancellation."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    stop_never,
    stop_when_event_set,
    wait_fixed,
)

from cluster_curator import logger
from cluster_curator.errors import PollCancelledError, PollTimeoutError

T = TypeVar("T")

# Set by the CLI signal handlers; every poll loop stops at its next check.
CANCEL = threading.Event()


def poll(
    check: Callable[[], T | None],
    *,
    interval: float,
    timeout: float | None,
    description: str,
    cancel: threading.Event | None = None,
) -> T:
    """Call ``check`` every ``interval`` seconds until it returns a value.

    ``check`` returns None to keep polling. Exceptions raised by ``check`` are
    not retried and propagate immediately.

    Args:
        check: Callable evaluated on every poll.
        interval: Seconds to wait between polls.
        timeout: Seconds before giving up, or None to poll until cancelled.
        description: What is being waited on, used in error messages.
        cancel: Cancellation event; defaults to the process-wide ``CANCEL``.

    Returns:
        The first non-None value returned by ``check``.

    Raises:
        PollTimeoutError: If the deadline passes first.
        PollCancelledError: If the cancellation event is set first.
    """
    cancel = cancel if cancel is not None else CANCEL
    stop = stop_when_event_set(cancel)
    stop = stop | (stop_after_delay(timeout) if timeout is not None else stop_never)

    retrying = Retrying(
        retry=retry_if_result(lambda result: result is None),
        wait=wait_fixed(interval),
        stop=stop,
        sleep=lambda seconds: _sleep(cancel, seconds),
        reraise=True,
    )
    try:
        return retrying(check)
    except RetryError as err:
        attempts = err.last_attempt.attempt_number
        if cancel.is_set():
            raise PollCancelledError(f"Cancelled while waiting for {description}") from err
        raise PollTimeoutError(
            f"Timed out after {timeout}s ({attempts} polls) waiting for {description}") from err


def _sleep(cancel: threading.Event, seconds: float) -> None:
    if seconds <= 0:
        time.sleep(0)
        return
    if cancel.wait(seconds):
        logger.debug("Poll sleep interrupted by cancellation")
