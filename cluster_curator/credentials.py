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

"""Tower credentials copied from the provider credential secret."""

from __future__ import annotations

from kubernetes import client
from rich.panel import Panel

from cluster_curator import console
from cluster_curator.config import CuratorSettings, split_credential_path
from cluster_curator.constants import TOWER_SECRET_KEYS, TOWER_SECRET_NAME
from cluster_curator.errors import ConflictError, ValidationError
from cluster_curator.kube import ResourceClient


def apply_cloud_provider(resources: ResourceClient, namespace: str, settings: CuratorSettings) -> None:
    """Create the ``toweraccess`` secret in the cluster namespace.

    The Tower ``host`` and ``token`` are copied from the secret named by
    ``PROVIDER_CREDENTIAL_PATH``. An existing ``toweraccess`` secret is kept.

    Args:
        resources: Resource client.
        namespace: Cluster namespace receiving the secret.
        settings: Supplies the provider credential path.

    Raises:
        ValidationError: If the path is missing or malformed, or the secret lacks a Tower key.
        NotFoundError: If the provider credential secret does not exist.
    """
    source_namespace, secret_name = split_credential_path(settings.provider_credential_path)
    console.print(Panel.fit(f"Applying Tower credentials from {source_namespace}/{secret_name}", style="bold blue"))

    source = resources.read_secret(source_namespace, secret_name)
    data = source.data or {}
    missing = [key for key in TOWER_SECRET_KEYS if key not in data]
    if missing:
        raise ValidationError(
            f"Secret {source_namespace}/{secret_name} is missing Tower keys: {', '.join(missing)}")

    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=TOWER_SECRET_NAME,
            namespace=namespace,
            labels={"cluster.open-cluster-management.io/copiedFromSecretName": secret_name,
                    "cluster.open-cluster-management.io/copiedFromNamespace": source_namespace},
        ),
        type="Opaque",
        data={key: data[key] for key in TOWER_SECRET_KEYS},
    )
    try:
        resources.create_secret(namespace, secret)
    except ConflictError:
        console.print(f"[yellow]   Secret {namespace}/{TOWER_SECRET_NAME} already exists[/yellow]")
        return
    console.print(f"[green]✅ Created secret {namespace}/{TOWER_SECRET_NAME}[/green]")
