"""
Configuration constants for the status bar sampling core.

Settings keys mirror the names used by the system settings provider; the
defaults below are substituted whenever a key is missing or malformed.
"""

# ── Network traffic settings keys ────────────────────────────────────
KEY_TRAFFIC_STATE      = "network_traffic_state"
KEY_TRAFFIC_TEXT       = "network_traffic_text"
KEY_TRAFFIC_ICON       = "network_traffic_icon"
KEY_TRAFFIC_HIDE       = "network_traffic_hide"
KEY_TRAFFIC_UNIT       = "network_traffic_unit"
KEY_TRAFFIC_INTERVAL   = "network_traffic_interval"
KEY_TRAFFIC_COLOR_UP   = "network_traffic_color_up"
KEY_TRAFFIC_COLOR_DOWN = "network_traffic_color_down"
KEY_TRAFFIC_COLOR_ICON = "network_traffic_color_icon"

# ── Clock settings keys ──────────────────────────────────────────────
KEY_CLOCK_AM_PM   = "status_bar_am_pm"
KEY_CLOCK_DOW     = "status_bar_dow"
KEY_CLOCK_COLOR   = "status_bar_clock_color"
KEY_CLOCK_24_HOUR = "time_12_24"
KEY_CLOCK_LOCALE  = "locale"

CLOCK_KEYS = (
    KEY_CLOCK_AM_PM,
    KEY_CLOCK_DOW,
    KEY_CLOCK_COLOR,
    KEY_CLOCK_24_HOUR,
    KEY_CLOCK_LOCALE,
)

# ── Traffic defaults ─────────────────────────────────────────────────
DEFAULT_TRAFFIC_STATE = 0           # neither direction shown
DEFAULT_TRAFFIC_TEXT  = 0           # no " U" / " D" suffix
DEFAULT_TRAFFIC_ICON  = 1
DEFAULT_TRAFFIC_HIDE  = 0
DEFAULT_TRAFFIC_UNIT  = 1           # 1 = bytes (base 1024), anything else = bits
DEFAULT_INTERVAL_MS   = 1000
DEFAULT_COLOR         = 0xFFFFFFFF  # opaque white, ARGB

# ── Legacy packed state mask ─────────────────────────────────────────
MASK_UP     = 0x00000001
MASK_DOWN   = 0x00000002
MASK_UNIT   = 0x00000004
MASK_PERIOD = 0xFFFF0000
PERIOD_SHIFT = 16

# ── Rate computation ─────────────────────────────────────────────────
KILOBIT  = 1000
KILOBYTE = 1024
TOO_SOON_FACTOR = 0.95              # periodic ticks earlier than this share of the interval are skipped
DEGENERATE_ELAPSED_MS = float(2 ** 63 - 1)
MAX_DISPLAY_VALUE = 999.9           # three integer digits, one fractional

# ── Clock defaults ───────────────────────────────────────────────────
STYLE_NORMAL = 0
STYLE_SMALL  = 1
STYLE_GONE   = 2

DEFAULT_AM_PM_STYLE = STYLE_GONE
DEFAULT_DOW_STYLE   = STYLE_GONE
DEFAULT_24_HOUR     = False
DEFAULT_LOCALE      = "en_US"
DEFAULT_TIME_ZONE   = "UTC"
SMALL_RELATIVE_SIZE = 0.7
CLOCK_TICK_MS       = 60_000        # the system time tick fires once a minute

# ── Presentation ─────────────────────────────────────────────────────
ICON_TRAFFIC_UP     = "stat_sys_network_traffic_up"
ICON_TRAFFIC_DOWN   = "stat_sys_network_traffic_down"
ICON_TRAFFIC_UPDOWN = "stat_sys_network_traffic_updown"

TEXT_SIZE_SINGLE_PX = 42
TEXT_SIZE_MULTI_PX  = 30

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL = "INFO"

# ── Demo dashboard ───────────────────────────────────────────────────
REFRESH_INTERVAL_MS = 1000          # Dashboard auto-refresh interval (milliseconds)
HISTORY_LENGTH = 120                # rate samples kept for the history chart

DEMO_RX_MEAN_BPS = 1.8 * 1024 * 1024   # ~1.8 MB/s download
DEMO_RX_STD_BPS  = 0.6 * 1024 * 1024
DEMO_TX_MEAN_BPS = 96 * 1024           # ~96 kB/s upload
DEMO_TX_STD_BPS  = 40 * 1024
DEMO_IDLE_PROBABILITY = 0.15           # chance that a read sees no traffic at all
