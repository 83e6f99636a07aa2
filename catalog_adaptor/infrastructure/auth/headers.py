from typing import Dict

from catalog_adaptor.core.exceptions import AdaptorConfigError
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType


def build_auth_headers(descriptor: AdapterDescriptor) -> Dict[str, str]:
    """
    Build the request headers a vendor expects.

    ``oauth`` sends a bearer token from ``credentials["access_token"]``;
    ``apikey`` sends ``credentials["api_key"]`` under the descriptor's
    ``api_key_header``; ``public`` sends nothing. ``extra_headers`` are
    always merged in.

    Raises:
        AdaptorConfigError: If the credential the auth type needs is missing
    """
    headers: Dict[str, str] = {"Accept": "application/json"}

    if descriptor.auth_type == AuthType.OAUTH:
        token = descriptor.credentials.get("access_token")
        if not token:
            raise AdaptorConfigError(
                f"Adaptor '{descriptor.name}' requires an OAuth access token",
                context={"adaptor": descriptor.name}
            )
        headers["Authorization"] = f"Bearer {token}"
    elif descriptor.auth_type == AuthType.APIKEY:
        api_key = descriptor.credentials.get("api_key")
        if not api_key:
            raise AdaptorConfigError(
                f"Adaptor '{descriptor.name}' requires an API key",
                context={"adaptor": descriptor.name}
            )
        headers[descriptor.api_key_header] = str(api_key)

    headers.update(descriptor.extra_headers)
    return headers


def has_credentials(descriptor: AdapterDescriptor) -> bool:
    """True when the descriptor carries what its auth type needs."""
    if descriptor.auth_type == AuthType.OAUTH:
        return bool(descriptor.credentials.get("access_token"))
    if descriptor.auth_type == AuthType.APIKEY:
        return bool(descriptor.credentials.get("api_key"))
    return True
