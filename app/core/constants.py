"""Shared defaults used when the environment does not override them."""

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_TRANSCRIBE_MODEL = "gpt-4o-mini-transcribe"

# Server-side throttling (per caller address)
MAX_REQUESTS = 15
STORAGE_WINDOW_MS = 60 * 60 * 1000  # 60 minutes
CLEANUP_INTERVAL_MS = 5 * 60 * 1000

# Output token caps
QUESTIONS_MAX_OUTPUT_TOKENS = 800
FEEDBACK_MAX_OUTPUT_TOKENS = 800

# Audio uploads
MAX_AUDIO_BYTES = 10 * 1024 * 1024
MAX_AUDIO_DURATION_MS = 120 * 1000

DEFAULT_CACHE_TTL_MS = 5 * 60 * 1000
DEFAULT_FEEDBACK_CACHE_TTL_MS = DEFAULT_CACHE_TTL_MS

RATE_LIMIT_EXCEEDED_MESSAGE = "Rate limit exceeded. Please try again later."
FALLBACK_ERROR_MESSAGE = "An unexpected error occurred"

# Question post-processing
MAX_QUESTION_CHARS = 200
