"""Method options and authentication markers carried in proto comments."""

from __future__ import annotations

import re
from typing import Optional

from .models import Comments, Options

# ``@auth`` has to sit on its own line of a leading comment.
_AUTH_MARKER = re.compile(r"^[ \t]*@auth\n", re.MULTILINE)


def extract_method_option(comment_text: str, prefix: str) -> Optional[str]:
    """Return the value of the first ``<prefix>:<value>`` marker, or None.

    ``prefix`` is a regular expression fragment, so callers may match several
    spellings with one pattern.
    """
    if not prefix:
        return None
    match = re.search(prefix + r":([^:\s]+)", comment_text)
    if match is None:
        return None
    return match.group(1)


def needs_auth(method_comments: str, service_comments: str) -> bool:
    """Return True when either leading comment block carries ``@auth``."""
    return bool(_AUTH_MARKER.search(method_comments) or _AUTH_MARKER.search(service_comments))


def service_options(comments: Comments, prefix: str) -> Options:
    return Options(
        method_option=extract_method_option(comments.trailing, prefix),
        requires_auth=needs_auth("", comments.leading),
    )


def method_options(method: Comments, service: Options, prefix: str) -> Options:
    """Resolve the option table for one method.

    ``service`` is the already resolved table of the enclosing service. The
    method's own trailing comment wins over the service option, and either
    level can require authentication.
    """
    option = extract_method_option(method.trailing, prefix)
    if option is None:
        option = service.method_option
    return Options(
        method_option=option,
        requires_auth=needs_auth(method.leading, "") or service.requires_auth,
    )


__all__ = ["extract_method_option", "method_options", "needs_auth", "service_options"]
