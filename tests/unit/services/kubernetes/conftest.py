"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from webhook_certgen.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client with API sub-mocks.

    API groups (core_v1, admissionregistration_v1, apiextensions_v1,
    custom_objects) are auto-created MagicMocks. Error translation is the
    real one so tests can raise ``ApiException`` from any API call.
    """
    mock_client = MagicMock()
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client
