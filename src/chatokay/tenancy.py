from __future__ import annotations

from contextvars import ContextVar
from typing import Optional


# Context variable storing the tenant subdomain for the in-flight request.
# None on the root domain.
_current_subdomain: ContextVar[Optional[str]] = ContextVar("current_subdomain", default=None)


def get_current_subdomain() -> Optional[str]:
    """Return the tenant subdomain the current request was addressed to.

    Set by the subdomain routing middleware; None on the root domain and in
    non-request contexts.
    """

    return _current_subdomain.get()


def set_current_subdomain(subdomain: Optional[str]) -> None:
    _current_subdomain.set(subdomain)


def extract_subdomain(host: str, root_domain: str) -> Optional[str]:
    """Return the tenant label of ``host`` or None for the root domain.

    - Local development: ``acme.localhost:3000`` -> ``acme``.
    - Production: ``acme.chatokay.com`` -> ``acme``; ``www`` is not a tenant.
      Hosts outside ``root_domain`` are never treated as tenants.
    """

    hostname = host.split(":", 1)[0].strip().lower().rstrip(".")
    if not hostname:
        return None

    if hostname == "localhost" or hostname.endswith(".localhost"):
        parts = hostname.split(".")
        if len(parts) > 1 and parts[0] != "localhost":
            return parts[0] or None
        return None

    root = root_domain.lower().strip(".")
    if not hostname.endswith("." + root):
        return None

    label = hostname[: -len(root) - 1]
    # Only a single label directly under the root domain names a tenant.
    if not label or "." in label or label == "www":
        return None
    return label
