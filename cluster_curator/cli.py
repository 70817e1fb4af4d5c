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

"""
cli.py - Entry point of the curator job container.

Examples:
    # Run the full install curation for my-cluster
    cluster-curator install my-cluster

    # Only wait for the ManagedCluster import
    cluster-curator monitor-import my-cluster --namespace my-cluster

    # Run the hook phase named by JOB_TYPE
    JOB_TYPE=posthook cluster-curator ansiblejob my-cluster

The cluster name and namespace can also come from CURATOR_CLUSTER_NAME and
CURATOR_CLUSTER_NAMESPACE; the namespace defaults to the cluster name.
"""

from __future__ import annotations

import logging
import signal
import sys
from types import FrameType

import typer

from cluster_curator import console, logger
from cluster_curator.config import load_settings
from cluster_curator.constants import OPERATIONS
from cluster_curator.curator import curator_run, usage_error
from cluster_curator.errors import CuratorError, UsageError
from cluster_curator.kube import ResourceClient
from cluster_curator.polling import CANCEL

app = typer.Typer(
    help="Run one ClusterCurator curation step.",
    add_completion=False,
)


def _cancel(signum: int, frame: FrameType | None) -> None:
    logger.warning("Received signal %d, stopping at the next poll", signum)
    CANCEL.set()


def _install_signal_handlers() -> None:
    signal.signal(signal.SIGTERM, _cancel)
    signal.signal(signal.SIGINT, _cancel)


@app.command()
def main(
    operation: str = typer.Argument("", help=f"One of: {', '.join(OPERATIONS)}"),
    cluster_name: str | None = typer.Argument(None, help="ClusterCurator and cluster name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace (default: cluster name)"),
    poll_timeout: float | None = typer.Option(
        None, "--poll-timeout", help="Give up waiting after this many seconds"),
) -> None:
    """Run one curation operation against a ClusterCurator."""
    try:
        overrides = {"poll_timeout": poll_timeout} if poll_timeout is not None else {}
        settings = load_settings(**overrides)
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        )

        if operation not in OPERATIONS:
            raise usage_error(operation)
        name = cluster_name or settings.cluster_name
        if not name:
            raise UsageError("Missing cluster name, pass it as an argument or set CURATOR_CLUSTER_NAME")
        target_namespace = namespace or settings.cluster_namespace or name

        _install_signal_handlers()
        curator_run(operation, ResourceClient.from_environment(), target_namespace, name, settings)
    except CuratorError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    app()
