"""
Error taxonomy for thumbnail resolution.

Every error carries the public HTTP status it resolves to, so the resolver can
translate failures without a lookup table of its own.
"""


class ThumbqError(Exception):
    status_code = 502


class InvalidIdentifier(ThumbqError):
    status_code = 400


class CacheInfrastructureError(ThumbqError):
    """Cache bucket unreachable or refusing the check; callers fall back."""


# Index lookups

class IndexLookupError(ThumbqError):
    status_code = 502


class IndexMalformedResponse(IndexLookupError):
    status_code = 502


class IndexNotFound(IndexLookupError):
    status_code = 404


class IndexMissingReference(IndexLookupError):
    status_code = 404


class IndexMalformedUrl(IndexLookupError):
    status_code = 404


# Origin fetches

class FetchError(ThumbqError):
    status_code = 502


class FetchTimeout(FetchError):
    status_code = 504


class FetchConnectionError(FetchError):
    status_code = 502
