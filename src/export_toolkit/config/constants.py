"""
System constants that should never change.

These are technical/engine limits, not user preferences.
User-configurable values should go in config.yaml instead.
"""

# Strategy selection
FRAMERATE_TOLERANCE = 0.5  # fps difference still treated as the same rate (29.97 vs 30)
MIN_SEGMENTS_FOR_CONCAT = 2

# Filter graph
AUDIO_SAMPLE_RATE = 48000
AUDIO_CHANNEL_LAYOUT = "stereo"
PIXEL_FORMAT = "yuv420p"
PAD_COLOR = "black"

# Title card font sizing
TITLE_FONT_DIVISOR = 12  # base font size = frame height / 12
TITLE_LONG_TEXT_CHARS = 50
TITLE_MEDIUM_TEXT_CHARS = 30
TITLE_LONG_TEXT_FACTOR = 0.6
TITLE_MEDIUM_TEXT_FACTOR = 0.75
TITLE_MANY_LINES = 3
TITLE_MANY_LINES_FACTOR = 0.7
TITLE_MULTI_LINE_FACTOR = 0.85

# Engine output parsing
ENCODERS_LIST_MINIMUM_PARTS = 2
ERROR_LINE_MARKERS = ("error", "invalid", "no such")
UNKNOWN_ENGINE_ERROR = "Unknown FFmpeg error"

# Preset aspect-ratio buckets
PORTRAIT_MAX_RATIO = 0.8
LANDSCAPE_MIN_RATIO = 1.2

# CLI display
ERROR_MESSAGE_TRUNCATE_LENGTH = 100
VERBOSE_LOGGING_THRESHOLD = 2
