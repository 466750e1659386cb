"""Domain enums."""

from enum import Enum


class SlotType(str, Enum):
    BREAKFAST = "breakfast"
    MORNING = "morning"
    LUNCH = "lunch"
    AFTERNOON = "afternoon"
    DINNER = "dinner"
    EVENING = "evening"


class SlotBehavior(str, Enum):
    ANCHOR = "anchor"
    FLEX = "flex"
    MEAL = "meal"
    OPTIONAL = "optional"
    TRAVEL = "travel"


class Sensitivity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TicketType(str, Enum):
    TIMED = "timed"
    FLEXIBLE = "flexible"
    NONE = "none"


class CommuteMethod(str, Enum):
    WALK = "walk"
    TRANSIT = "transit"
    TAXI = "taxi"
    BUS = "bus"
    TRAIN = "train"
    DRIVE = "drive"


class DependencyType(str, Enum):
    MUST_BEFORE = "must-before"
    MUST_AFTER = "must-after"
    SAME_DAY = "same-day"
    DIFFERENT_DAY = "different-day"


class ActivityState(str, Enum):
    UPCOMING = "upcoming"
    PENDING = "pending"
    EN_ROUTE = "en_route"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    EXTENDED = "extended"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    DEFERRED = "deferred"
    REPLACED = "replaced"


class TriggerKind(str, Enum):
    TIME_THRESHOLD = "time_threshold"
    START_TIME_PASSED = "start_time_passed"
    END_TIME_PASSED = "end_time_passed"
    LOCATION_DETECTED = "location_detected"
    USER_DEPART = "user_depart"
    USER_CHECK_IN = "user_check_in"
    USER_CHECK_OUT = "user_check_out"
    USER_SKIP = "user_skip"
    USER_DEFER = "user_defer"
    USER_EXTEND = "user_extend"
    USER_SHORTEN = "user_shorten"
    SYSTEM_RESHUFFLE = "system_reshuffle"
    EXTERNAL_TRIGGER = "external_trigger"


class CompletionType(str, Enum):
    NATURAL = "natural"
    AUTO = "auto"
    EARLY = "early"


class GeofenceType(str, Enum):
    ACTIVITY = "activity"
    HOTEL = "hotel"
    TRANSIT_STATION = "transit_station"
    CUSTOM = "custom"


class GeofenceEventType(str, Enum):
    ENTER = "enter"
    EXIT = "exit"
    DWELL = "dwell"


class ScheduleStatus(str, Enum):
    ON_TRACK = "on_track"
    MINOR_DELAY = "minor_delay"
    NEEDS_ATTENTION = "needs_attention"
    CRITICAL = "critical"


class ExecutionMode(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    WINDING_DOWN = "winding_down"
    STOPPED = "stopped"


class ConstraintLayer(str, Enum):
    TEMPORAL = "temporal"
    TRAVEL = "travel"
    CLUSTERING = "clustering"
    DEPENDENCIES = "dependencies"
    PACING = "pacing"
    FRAGILITY = "fragility"
    CROSS_DAY = "cross-day"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiversionType(str, Enum):
    LATE_START = "late_start"
    EXTENDED_STAY = "extended_stay"
    EARLY_DEPARTURE = "early_departure"
    SKIP_ACTIVITY = "skip_activity"
    UNPLANNED_STOP = "unplanned_stop"
    SLOW_COMMUTE = "slow_commute"
    FAST_COMMUTE = "fast_commute"
    GOT_LOST = "got_lost"
    WEATHER_DELAY = "weather_delay"
    ENERGY_LOW = "energy_low"
    DISCOVERED_GEM = "discovered_gem"
    MEAL_EXTENSION = "meal_extension"
    BATHROOM_BREAK = "bathroom_break"
    PHONE_CALL = "phone_call"
    SOUVENIR_SHOPPING = "souvenir_shopping"
    ACTIVITY_CLOSED = "activity_closed"
    PERFECT_TIMING = "perfect_timing"


class Weather(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    HOT = "hot"
    COLD = "cold"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
