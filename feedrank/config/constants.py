"""Default ranking configuration values."""

ALGORITHM_VERSION = "1.0.0"

UNKNOWN_DOMAIN = "unknown"

# Authority scores on a 1-10 scale, exact host match.
DEFAULT_EXACT_AUTHORITY: dict[str, float] = {
    # Official Laravel sources
    "laravel.com": 10,
    "blog.laravel.com": 10,
    # High authority community sites
    "laracasts.com": 9,
    "laravel-news.com": 9,
    "codecourse.com": 9,
    "laraveldaily.com": 9,
    # Well-known individual authors
    "freek.dev": 8,
    "mattstauffer.com": 8,
    "stitcher.io": 8,
    "christoph-rumpel.com": 8,
    "dyrynda.com.au": 8,
    # Popular community blogs
    "tighten.co": 7,
    "spatie.be": 7,
    "beyondco.de": 7,
    "nunomaduro.com": 7,
    # General developer platforms
    "dev.to": 6,
    "medium.com": 6,
    "hackernoon.com": 6,
}

# Wildcard patterns, checked in order after an exact miss. First match wins.
DEFAULT_AUTHORITY_PATTERNS: list[tuple[str, float]] = [
    ("blog.*", 5),
    ("*.dev", 5),
]

DEFAULT_AUTHORITY_SCORE: float = 3.0

THREE_FACTOR_WEIGHTS: dict[str, float] = {
    "source_authority": 0.4,
    "recency": 0.3,
    "engagement": 0.3,
    "source_diversity": 0.0,
}

FOUR_FACTOR_WEIGHTS: dict[str, float] = {
    "source_authority": 0.35,
    "recency": 0.3,
    "engagement": 0.25,
    "source_diversity": 0.1,
}

WEIGHT_PRESETS: dict[str, dict[str, float]] = {
    "three_factor": THREE_FACTOR_WEIGHTS,
    "four_factor": FOUR_FACTOR_WEIGHTS,
}

# Cache windows in seconds
DISTRIBUTION_TTL_SECONDS = 3600
TRENDING_TTL_SECONDS = 300
HERO_TTL_SECONDS = 600

# Cache keys
SOURCE_DISTRIBUTION_KEY = "source_distribution"
TRENDING_KEY_TEMPLATE = "trending_posts_{limit}_{hours}"
HERO_KEY_TEMPLATE = "hero_content_{limit}"
