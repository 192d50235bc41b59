"""KMS — deferred signing delegate."""

from algo_gateway.kms.client import KeyManagementDelegate, KMSClient

__all__ = ["KMSClient", "KeyManagementDelegate"]
