"""Root exception hierarchy for the ranking engine.

Scoring and reordering never raise on malformed post data. The only
failures that surface to callers come from external collaborators (the
post store and the cache) or from invalid configuration files.
"""


class RankingError(Exception):
    """Base exception for all feedrank errors."""
