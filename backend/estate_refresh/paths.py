"""Base path helpers for sites published under a URL sub-path."""

from urllib.parse import urlsplit


def base_path(base_url: str) -> str:
    """Return the sub-path of a site URL, e.g. '/properties' or '/' for the root."""
    path = urlsplit(base_url).path.rstrip("/")
    return path or "/"


def resolve_path(base_url: str, path: str) -> str:
    """Resolve a site-relative path against the sub-path of base_url."""
    prefix = base_path(base_url)
    normalized = path.strip("/")

    if prefix == "/":
        return "/" + normalized

    return f"{prefix}/{normalized}"


def is_absolute_url(base_url: str) -> bool:
    """True when base_url carries both a scheme and a host."""
    parts = urlsplit(base_url)
    return bool(parts.scheme) and bool(parts.netloc)
