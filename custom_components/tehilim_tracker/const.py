DOMAIN = "tehilim_tracker"

STORAGE_KEY = f"{DOMAIN}.ledger"
STORAGE_VERSION = 1

# Dispatcher signal sent after every ledger or view change
SIGNAL_UPDATED = f"{DOMAIN}_updated"

# Fired on the HA bus when a full pass through Tehilim completes
EVENT_CYCLE_COMPLETED = f"{DOMAIN}_cycle_completed"

SERVICE_COMPLETE_DAILY = "complete_daily"
SERVICE_COMPLETE_CHAPTER = "complete_chapter"
SERVICE_COMPLETE_SECTION = "complete_section"
SERVICE_CATCH_UP = "catch_up"
SERVICE_NAVIGATE_MONTH = "navigate_month"
SERVICE_FETCH_CHAPTERS = "fetch_chapters"

ATTR_START = "start"
ATTR_END = "end"
ATTR_SECTION = "section"
ATTR_DAY = "day"
ATTR_DIRECTION = "direction"
ATTR_RESET = "reset"

# Upper bound for the startup scan of skipped days
GAP_SCAN_TIMEOUT = 20
