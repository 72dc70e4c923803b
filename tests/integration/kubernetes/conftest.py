"""Kubernetes integration test fixtures using testcontainers K3S.

Provides a real K3S (lightweight Kubernetes) cluster in Docker for testing
the create and patch flows against a live Kubernetes API server.
"""

from __future__ import annotations

import contextlib
import os
import subprocess
import time
import uuid
from collections.abc import Generator
from typing import TYPE_CHECKING

import pytest
import yaml
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from webhook_certgen.integrations.kubernetes.client import KubernetesClient
from webhook_certgen.integrations.kubernetes.config import KubernetesConfig
from webhook_certgen.services.certgen import CertgenService

if TYPE_CHECKING:
    from pathlib import Path


# ============================================================================
# Docker Availability Check
# ============================================================================


def _docker_available() -> bool:
    """Check if Docker daemon is running."""
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=10,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


# ============================================================================
# K3S Container Class
# ============================================================================

K3S_IMAGE = os.environ.get("K3S_TEST_IMAGE", "rancher/k3s:v1.31.4-k3s1")


class K3SContainer(DockerContainer):  # type: ignore[misc]
    """K3S (lightweight Kubernetes) container for integration testing.

    Runs a single-node K3S cluster inside Docker with the API server
    exposed on a random port. Traefik is disabled for faster startup.
    """

    K8S_API_PORT = 6443

    def __init__(self, image: str = K3S_IMAGE) -> None:
        super().__init__(image)

        # K3S server configuration
        self.with_command(
            "server"
            " --disable=traefik"
            " --disable=metrics-server"
            " --tls-san=0.0.0.0"
            " --write-kubeconfig-mode=644"
        )

        # Expose the K8S API port
        self.with_exposed_ports(self.K8S_API_PORT)

        # K3S needs elevated privileges to run containerd
        self.with_kwargs(
            privileged=True,
            tmpfs={"/run": "", "/var/run": ""},
        )

    def get_kubeconfig(self) -> str:
        """Extract kubeconfig YAML from the running container.

        Reads /etc/rancher/k3s/k3s.yaml and rewrites the server address
        to use the mapped host:port so it's accessible from the host.
        """
        exit_code, output = self.exec("cat /etc/rancher/k3s/k3s.yaml")
        if exit_code != 0:
            raise RuntimeError(f"Failed to read kubeconfig: {output}")

        config = yaml.safe_load(output.decode("utf-8"))

        host = self.get_container_host_ip()
        port = self.get_exposed_port(self.K8S_API_PORT)
        for cluster in config.get("clusters", []):
            cluster.get("cluster", {})["server"] = f"https://{host}:{port}"

        return yaml.dump(config)


# ============================================================================
# K3S Cluster Fixtures (Session-Scoped)
# ============================================================================


@pytest.fixture(scope="session")
def k3s_container() -> Generator[K3SContainer]:
    """Session-scoped K3S container for integration tests."""
    if not _docker_available():
        pytest.skip("Docker not available -- skipping Kubernetes integration tests")

    container = K3SContainer()

    with container:
        wait_for_logs(container, "Node controller sync successful", timeout=120)
        # Give a short buffer for API server to stabilize
        time.sleep(2)
        yield container


@pytest.fixture(scope="session")
def k3s_kubeconfig_path(
    k3s_container: K3SContainer,
    tmp_path_factory: pytest.TempPathFactory,
) -> Path:
    """Write K3S kubeconfig to a temp file for KubernetesClient."""
    kubeconfig_path = tmp_path_factory.mktemp("k3s") / "kubeconfig.yaml"
    kubeconfig_path.write_text(k3s_container.get_kubeconfig())
    return kubeconfig_path


@pytest.fixture(scope="session")
def k8s_config(k3s_kubeconfig_path: Path) -> KubernetesConfig:
    """Connection config pointing to the K3S cluster."""
    return KubernetesConfig(kubeconfig=str(k3s_kubeconfig_path))


@pytest.fixture(scope="session")
def k8s_client(k8s_config: KubernetesConfig) -> Generator[KubernetesClient]:
    """Session-scoped KubernetesClient connected to the K3S cluster."""
    client = KubernetesClient(k8s_config)
    yield client
    client.close()


# ============================================================================
# Namespace Isolation Fixtures
# ============================================================================


@pytest.fixture(scope="module")
def test_namespace(k8s_client: KubernetesClient) -> Generator[str]:
    """Module-scoped unique namespace for test isolation.

    Deleting the namespace on teardown cascades to the Secrets in it.
    """
    ns_name = f"inttest-{uuid.uuid4().hex[:8]}"
    k8s_client.core_v1.create_namespace(
        body={
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {"name": ns_name},
        }
    )

    for _ in range(30):
        ns = k8s_client.core_v1.read_namespace(name=ns_name)
        if ns.status.phase == "Active":
            break
        time.sleep(0.5)

    yield ns_name

    with contextlib.suppress(Exception):
        k8s_client.core_v1.delete_namespace(name=ns_name)


@pytest.fixture
def unique_name() -> str:
    """Generate a unique resource name for test isolation."""
    return f"test-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def certgen_service(k8s_client: KubernetesClient) -> CertgenService:
    """Create a CertgenService connected to the K3S cluster."""
    return CertgenService.from_client(k8s_client)


# ============================================================================
# Cluster-Scoped Object Fixtures
# ============================================================================


def _webhook_entries(name: str, namespace: str) -> list[dict[str, object]]:
    return [
        {
            "name": f"{n}.{name}.example.com",
            "clientConfig": {"service": {"name": name, "namespace": namespace, "path": f"/{n}"}},
            "admissionReviewVersions": ["v1"],
            "sideEffects": "None",
            "failurePolicy": "Ignore",
            "rules": [
                {
                    "apiGroups": ["certgen.example.com"],
                    "apiVersions": ["v1"],
                    "operations": ["CREATE"],
                    "resources": ["widgets"],
                }
            ],
        }
        for n in ("first", "second")
    ]


@pytest.fixture
def webhook_configurations(
    k8s_client: KubernetesClient, test_namespace: str, unique_name: str
) -> Generator[str]:
    """Validating and mutating configurations sharing one name, two webhooks each."""
    api = k8s_client.admissionregistration_v1
    api.create_validating_webhook_configuration(
        body={
            "apiVersion": "admissionregistration.k8s.io/v1",
            "kind": "ValidatingWebhookConfiguration",
            "metadata": {"name": unique_name},
            "webhooks": _webhook_entries(unique_name, test_namespace),
        }
    )
    api.create_mutating_webhook_configuration(
        body={
            "apiVersion": "admissionregistration.k8s.io/v1",
            "kind": "MutatingWebhookConfiguration",
            "metadata": {"name": unique_name},
            "webhooks": _webhook_entries(unique_name, test_namespace),
        }
    )

    yield unique_name

    with contextlib.suppress(Exception):
        api.delete_validating_webhook_configuration(name=unique_name)
    with contextlib.suppress(Exception):
        api.delete_mutating_webhook_configuration(name=unique_name)


def _crd_body(plural: str, group: str, namespace: str, *, webhook: bool) -> dict[str, object]:
    body: dict[str, object] = {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{plural}.{group}"},
        "spec": {
            "group": group,
            "scope": "Namespaced",
            "names": {"plural": plural, "singular": plural[:-1], "kind": plural[:-1].title()},
            "versions": [
                {
                    "name": "v1",
                    "served": True,
                    "storage": True,
                    "schema": {"openAPIV3Schema": {"type": "object"}},
                }
            ],
        },
    }
    if webhook:
        body["spec"]["conversion"] = {  # type: ignore[index]
            "strategy": "Webhook",
            "webhook": {
                "conversionReviewVersions": ["v1"],
                "clientConfig": {
                    "service": {"name": "converter", "namespace": namespace, "path": "/convert"}
                },
            },
        }
    return body


@pytest.fixture
def crd_group(k8s_client: KubernetesClient, test_namespace: str) -> Generator[str]:
    """An API group with one convertible CRD and one without a conversion webhook."""
    group = f"{uuid.uuid4().hex[:8]}.certgen.example.com"
    api = k8s_client.apiextensions_v1
    api.create_custom_resource_definition(
        body=_crd_body("widgets", group, test_namespace, webhook=True)
    )
    api.create_custom_resource_definition(
        body=_crd_body("gadgets", group, test_namespace, webhook=False)
    )

    yield group

    for plural in ("widgets", "gadgets"):
        with contextlib.suppress(Exception):
            api.delete_custom_resource_definition(name=f"{plural}.{group}")
