"""Domain constants shared by deterministic logic."""

from tripexec.domain.enums import ScheduleStatus, SlotBehavior, SlotType

EARTH_RADIUS_METERS = 6371000.0

PENDING_THRESHOLD_MINUTES = 30
OVERRUN_GRACE_MINUTES = 15
DELAY_ALERT_MINUTES = 15

MIN_BOOKING_BUFFER = 15
MAX_SINGLE_EXTENSION = 60
MIN_ACTIVITY_DURATION = 15
SUGGESTED_EXTENSIONS = (15, 30, 45, 60)

DEFAULT_ACTIVITY_RADIUS = 150.0
HOTEL_RADIUS = 250.0
TRANSIT_RADIUS = 100.0
DEFAULT_DWELL_SECONDS = 600

LAST_MINUTE_OF_DAY = 23 * 60 + 59

BOOKING_TAGS = frozenset({"reservation", "booking", "ticket", "tour", "timed-entry"})

MEAL_SLOT_TYPES = frozenset({SlotType.BREAKFAST, SlotType.LUNCH, SlotType.DINNER})

BEHAVIOR_RIGIDITY = {
    SlotBehavior.ANCHOR: 1.0,
    SlotBehavior.TRAVEL: 0.9,
    SlotBehavior.MEAL: 0.6,
    SlotBehavior.FLEX: 0.4,
    SlotBehavior.OPTIONAL: 0.2,
}
DEFAULT_RIGIDITY = 0.5
IMMOVABLE_RIGIDITY = 0.95

# Upper bound (inclusive, minutes) of each schedule status band.
STATUS_BANDS = (
    (5, ScheduleStatus.ON_TRACK),
    (15, ScheduleStatus.MINOR_DELAY),
    (30, ScheduleStatus.NEEDS_ATTENTION),
)

MAX_DAILY_WALKING_METERS = 15000.0
MAX_DAILY_ACTIVITY_MINUTES = 600
MIN_ACTIVITY_BUFFER_MINUTES = 15
MIN_DEPARTURE_BUFFER_MINUTES = 30
CONSECUTIVE_WALK_LIMIT = 4
