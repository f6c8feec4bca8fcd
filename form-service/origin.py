"""
origin.py — Origin Gate
========================
All access decisions go through here. A request is accepted only when its
Origin (preferred) or Referer (fallback) resolves to a host on the allow-list.

Allow-list rule:
  - exact host match, or
  - host ends with "." + entry, for every entry that is not a local
    development host (anything containing "localhost" or a loopback IP).
    Local entries match exactly, never as a parent domain.
"""

import ipaddress
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

log = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class OriginResolution:
    origin: str     # Value echoed back in Access-Control-Allow-Origin
    source: str     # "origin" or "referer"
    host: str       # host[:port] that matched the allow-list


def _is_local_entry(entry: str) -> bool:
    if "localhost" in entry:
        return True
    host = entry
    if host.startswith("["):
        host = host[1:].split("]", 1)[0]
    elif host.count(":") == 1:
        host = host.split(":", 1)[0]
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def is_allowed_domain(host: str, allowed_domains) -> bool:
    """True if host is an allow-listed entry or a subdomain of a non-local one."""
    host = host.lower()
    entries = [d.lower() for d in allowed_domains]
    if host in entries:
        return True
    for entry in entries:
        if _is_local_entry(entry):
            continue
        if host.endswith("." + entry):
            return True
    return False


def parse_host(url: str) -> tuple[str, str] | None:
    """
    Returns (origin, host) for an absolute URL, or None if it cannot be parsed.
    host keeps a non-default port; origin is scheme://host.
    """
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None

    scheme = parts.scheme.lower()
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return f"{scheme}://{host}", host


def resolve_origin(origin_header: str | None,
                   referer_header: str | None,
                   allowed_domains) -> OriginResolution | None:
    """
    Ordered resolution: Origin first, Referer only if Origin is missing,
    unparseable or not allowed. Returns None when neither qualifies.
    """
    if origin_header:
        parsed = parse_host(origin_header)
        if parsed and is_allowed_domain(parsed[1], allowed_domains):
            return OriginResolution(origin=origin_header, source="origin", host=parsed[1])

    if referer_header:
        parsed = parse_host(referer_header)
        if parsed and is_allowed_domain(parsed[1], allowed_domains):
            return OriginResolution(origin=parsed[0], source="referer", host=parsed[1])

    log.warning(f"Origin rejected: origin={origin_header!r} referer={referer_header!r}")
    return None
