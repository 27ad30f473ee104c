"""Constants for the ranker signals."""

# All signals share a 0-10 scale
MAX_SIGNAL_SCORE: float = 10.0

# Recency decay, in hours since publish
RECENCY_FRESH_HOURS: float = 24.0
RECENCY_WEEK_HOURS: float = 168.0
RECENCY_WEEK_DECAY_HOURS: float = 168.0
RECENCY_TAIL_SCORE: float = 3.0
RECENCY_TAIL_DECAY_HOURS: float = 24.0 * 30

# Engagement blend
VIEW_VELOCITY_WEIGHT: float = 0.4
LIKE_VELOCITY_WEIGHT: float = 0.4
LIKE_VELOCITY_MULTIPLIER: float = 10.0
ENGAGEMENT_RATE_WEIGHT: float = 0.2
ENGAGEMENT_LOG_SCALE: float = 2.0

# Source diversity: (percentage strictly above, score), checked in order
DIVERSITY_STEPS: list[tuple[float, float]] = [
    (50.0, 2.0),
    (20.0, 4.0),
    (10.0, 6.0),
    (5.0, 7.0),
]
DIVERSITY_UNDERREPRESENTED_SCORE: float = 9.0
DIVERSITY_NEUTRAL_SCORE: float = 5.0

# Most recent scores kept for percentile reporting
SCORE_SAMPLE_LIMIT: int = 10_000
