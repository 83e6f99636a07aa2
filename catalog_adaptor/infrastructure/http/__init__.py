from catalog_adaptor.infrastructure.http.client import RequestConfig, RetryingHttpClient

__all__ = ["RequestConfig", "RetryingHttpClient"]
