"""Internal constants shared across the package."""

# ------------------------------------------------------------------
# Volume scale
# ------------------------------------------------------------------

VOLUME_MIN = 0
VOLUME_MAX = 100

#: Raw encoder units per volume point (one notch).
UNIT_SIZE = 40

# ------------------------------------------------------------------
# Backlash resolution and inactivity
# ------------------------------------------------------------------

CONFIRM_THRESHOLD = 50
CANCEL_THRESHOLD = 10
IDLE_TIMEOUT_SECONDS = 30.0

#: Largest single-tick magnitude accepted before a tick is treated as noise.
MAX_RAW_MAGNITUDE = 400

# ------------------------------------------------------------------
# Haptics
# ------------------------------------------------------------------

DEFAULT_HAPTIC_DEVICE = "/dev/hidraw0"

#: Output report id 1: repeat=2, manual=3, retrigger=70 ("chunky" pulse).
HAPTIC_PULSE_REPORT: bytes = bytes((1, 2, 3, 70, 0))

# ------------------------------------------------------------------
# MQTT topics (relative to the configured prefix)
# ------------------------------------------------------------------

DEFAULT_TOPIC_PREFIX = "diald"
VOLUME_TOPIC = "volume"
VOLUME_SET_TOPIC = "volume/set"
CLICK_TOPIC = "click"


def clamp_volume(value: int) -> int:
    """Clamp *value* into the ``[VOLUME_MIN, VOLUME_MAX]`` range."""
    return max(VOLUME_MIN, min(VOLUME_MAX, int(value)))
