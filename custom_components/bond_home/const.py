DOMAIN = "bond_home"

CONF_HOST = "host"
CONF_NAME = "name"
CONF_TOKEN = "token"
DEFAULT_NAME = "Bond Home"

PLATFORMS = ["fan", "light", "cover"]

UPDATE_INTERVAL_SECONDS = 10

# Per-device options (stored under entry.options[OPT_DEVICES][device_id])
OPT_DEVICES = "devices"
OPT_DEVICE_ID = "device_id"
OPT_COMMUNICATION_MODE = "communication_mode"
OPT_REPEAT_COUNT = "repeat_count"
OPT_REPEAT_DELAY_MS = "repeat_delay_ms"
OPT_SPEED_MODE = "speed_mode"

MODE_TWO_WAY = "two_way"
MODE_ONE_WAY = "one_way"

MIN_REPEAT_COUNT = 1
MAX_REPEAT_COUNT = 5
DEFAULT_REPEAT_COUNT = 3

MIN_REPEAT_DELAY_MS = 100
MAX_REPEAT_DELAY_MS = 10000
DEFAULT_FAN_REPEAT_DELAY_MS = 500
DEFAULT_SHADE_REPEAT_DELAY_MS = 2000

SPEED_MODE_3 = "3"
SPEED_MODE_5 = "5"

# Commands that must go out exactly once, whatever the communication mode.
# Lower case; lookups lower-case the command name first.
NON_REPEATABLE_COMMANDS = frozenset(
    {
        "stop",
        "hold",
        "lighton",
        "lightoff",
        "setlightlevel",
        "setbrightness",
        "stoppositionchange",
    }
)

# Bond device types
TYPE_CEILING_FAN = "CF"
TYPE_MOTORIZED_SHADES = "MS"
TYPE_GENERIC = "GX"

# Bond actions
ACT_TURN_ON = "TurnOn"
ACT_TURN_OFF = "TurnOff"
ACT_SET_SPEED = "SetSpeed"
ACT_BREEZE_ON = "BreezeOn"
ACT_BREEZE_OFF = "BreezeOff"
ACT_SET_DIRECTION = "SetDirection"
ACT_TOGGLE_DIRECTION = "ToggleDirection"
ACT_TURN_LIGHT_ON = "TurnLightOn"
ACT_TURN_LIGHT_OFF = "TurnLightOff"
ACT_TOGGLE_LIGHT = "ToggleLight"
ACT_SET_BRIGHTNESS = "SetBrightness"
ACT_OPEN = "Open"
ACT_CLOSE = "Close"
ACT_TOGGLE_OPEN = "ToggleOpen"
ACT_HOLD = "Hold"
ACT_PRESET = "Preset"
ACT_SET_POSITION = "SetPosition"

# Fan speeds
SPEED_OFF = "off"
SPEED_ON = "on"
SPEED_AUTO = "auto"
SPEED_LOW = "low"
SPEED_MEDIUM_LOW = "medium-low"
SPEED_MEDIUM = "medium"
SPEED_MEDIUM_HIGH = "medium-high"
SPEED_HIGH = "high"

SPEEDS_3 = (SPEED_LOW, SPEED_MEDIUM, SPEED_HIGH)
SPEEDS_5 = (SPEED_LOW, SPEED_MEDIUM_LOW, SPEED_MEDIUM, SPEED_MEDIUM_HIGH, SPEED_HIGH)

# (upper bound inclusive, speed) for setLevel percentages
LEVEL_BREAKPOINTS_3 = ((33, SPEED_LOW), (66, SPEED_MEDIUM), (100, SPEED_HIGH))
LEVEL_BREAKPOINTS_5 = (
    (20, SPEED_LOW),
    (40, SPEED_MEDIUM_LOW),
    (60, SPEED_MEDIUM),
    (80, SPEED_MEDIUM_HIGH),
    (100, SPEED_HIGH),
)

DIRECTION_FORWARD = "forward"
DIRECTION_REVERSE = "reverse"
BOND_DIRECTIONS = {DIRECTION_FORWARD: 1, DIRECTION_REVERSE: -1}

# Shade position (ours: 100 = open, 0 = closed; Bond: 0 = open, 100 = closed)
POSITION_OPEN = 100
POSITION_CLOSED = 0
POSITION_PRESET = 50

# Shade state values
SHADE_OPEN = "open"
SHADE_CLOSED = "closed"
SHADE_OPENING = "opening"
SHADE_CLOSING = "closing"
SHADE_PARTIALLY_OPEN = "partially open"
