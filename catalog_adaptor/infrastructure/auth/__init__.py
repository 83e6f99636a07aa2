from catalog_adaptor.infrastructure.auth.headers import build_auth_headers, has_credentials

__all__ = ["build_auth_headers", "has_credentials"]
