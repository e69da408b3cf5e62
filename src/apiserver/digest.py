"""
=============================================================================
HMAC DIGEST CHECK
=============================================================================

Optional shared-secret authentication for API queries.

=============================================================================
HOW IT WORKS
=============================================================================

The client and the server share a private key. For each query the client
sends the query term AND an HMAC-SHA1 of that term computed with the key:

    GET /search?q=KSFO&digest=3f9c...e1

    ┌──────────────────────────────┐          ┌──────────────────────────┐
    │ CLIENT                       │          │ SERVER                   │
    │ digest = HMAC(key, "KSFO")   │  ──────► │ HMAC(key, "KSFO")        │
    │          .hexdigest()        │          │   == digest ?            │
    └──────────────────────────────┘          └──────────────────────────┘

Only clients holding the key can produce a matching digest, and the key
itself never travels over the wire.

=============================================================================
INTERVIEW QUESTIONS ABOUT HMAC
=============================================================================

Q: "Why compare with hmac.compare_digest instead of ==?"
A: "== can return as soon as the first byte differs, so response timing
   leaks how many leading characters of a forged digest were right.
   compare_digest takes the same time for any two inputs of equal length."

Q: "Does this stop replay attacks?"
A: "No. A captured (term, digest) pair stays valid forever. Adding a
   timestamp or nonce to the signed term is the usual fix."

=============================================================================
"""

from functools import wraps
import hashlib
import hmac
from http import HTTPStatus
from typing import Optional

from .http.request import HTTPRequest
from .http.respond import Handler
from .http.response import HTTPResponse, error


def compute_digest(private_key: str, term: str) -> str:
    """Lower-case hex HMAC-SHA1 of `term` keyed with `private_key`."""
    mac = hmac.new(private_key.encode("utf-8"), term.encode("utf-8"), hashlib.sha1)
    return mac.hexdigest()


def digest_matches(private_key: str, term: str, claimed_digest: str) -> bool:
    """
    Check a client-supplied digest of a query term.

    Args:
        private_key: Key shared with authorised clients.
        term: The query term the client signed.
        claimed_digest: Hex HMAC-SHA1 sent by the client.

    Returns:
        True if the digest is correct.
    """
    expected = compute_digest(private_key, term)
    return hmac.compare_digest(expected.encode("utf-8"), claimed_digest.encode("utf-8"))


def require_digest(
    private_key: str,
    term_param: str = "q",
    digest_param: str = "digest",
):
    """
    Decorator that guards a handler with a digest check.

    The term and digest are read from the query string. When either is
    missing or the digest does not match, the client gets 401 and the
    wrapped handler does not run.

    Usage:
        @require_digest(SECRET)
        def search(response, request):
            ...

        router.register("search", search)
    """
    def decorator(handler: Handler) -> Handler:
        @wraps(handler)
        def guarded(response: HTTPResponse, request: HTTPRequest) -> None:
            term: Optional[str] = request.get_query(term_param)
            claimed: Optional[str] = request.get_query(digest_param)
            if term is None or claimed is None or not digest_matches(private_key, term, claimed):
                request.logger.warning(
                    "digest check failed for %s %s", request.method, request.path
                )
                error(response, "Unauthorized", HTTPStatus.UNAUTHORIZED)
                return
            handler(response, request)
        return guarded
    return decorator
