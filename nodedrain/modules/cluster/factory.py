"""
Cluster Factory following Black Box Design principles.

This factory:
- Loads Kubernetes client credentials (kubeconfig or in-cluster)
- Wires the API objects together
- Returns only the ClusterModule facade
"""

import logging

from kubernetes import client, config

from ...config.provider import ConfigProvider
from .cluster import ClusterModule

logger = logging.getLogger(__name__)


class ClusterFactory:
    """
    Factory for building the cluster access stack.

    Credential loading failures are fatal: they surface as exceptions from
    build() and abort process startup.
    """

    @staticmethod
    def build_api_client(config_provider: ConfigProvider) -> client.ApiClient:
        """
        Build a Kubernetes ApiClient.

        Raises:
            kubernetes.config.ConfigException: No usable credentials
        """
        kube_config = config_provider.get_kube_client_config()

        if kube_config.in_cluster:
            logger.info("Using in-cluster Kubernetes configuration")
            configuration = client.Configuration()
            config.load_incluster_config(client_configuration=configuration)
            return client.ApiClient(configuration)

        logger.info(f"Using kubeconfig {kube_config.kubeconfig}")
        return config.new_client_from_config(config_file=kube_config.kubeconfig)

    @staticmethod
    def build(config_provider: ConfigProvider) -> ClusterModule:
        """
        Build the complete cluster access stack.

        Args:
            config_provider: Configuration provider

        Returns:
            ClusterModule facade
        """
        driver_config = config_provider.get_driver_config()
        api_client = ClusterFactory.build_api_client(config_provider)

        return ClusterModule(
            core_api=client.CoreV1Api(api_client),
            custom_api=client.CustomObjectsApi(api_client),
            request_timeout=driver_config.request_timeout,
        )
