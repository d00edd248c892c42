# src/behavior/constants.py
"""Fixed timings and thresholds of the behavior core (seconds / blocks)."""

from __future__ import annotations

# movement
POLL_INTERVAL_S = 0.1
GOAL_TOLERANCE = 1.0
ARRIVAL_THRESHOLD = 2.0
ARRIVAL_TIMEOUT_S = 10.0
HOP_INTERVAL_S = 0.1
POST_LEG_DELAY_S = 1.0

# sleeping
NIGHT_START = 13000
NIGHT_END = 23000
BED_APPROACH_THRESHOLD = 3.0
BED_APPROACH_TIMEOUT_S = 10.0
PRE_SLEEP_DELAY_S = 0.3
SLEEP_DEBOUNCE_S = 10.0
RESUME_DELAY_S = 2.0

# monitors
NIGHT_CHECK_INTERVAL_S = 2.0
MODE_CHECK_INTERVAL_S = 3.0
MODE_REVERIFY_DELAY_S = 1.0

# placement / build
EQUIP_SETTLE_S = 0.2
PLACE_SETTLE_S = 0.5
PRE_BREAK_DELAY_S = 0.7
POST_BREAK_VERIFY_S = 0.2
BUILD_STOCK = 64

# provisioning
PROVISION_SETTLE_S = 0.5
CREATIVE_SLOT_START = 9
CREATIVE_SLOT_END = 45
CREATIVE_FALLBACK_SLOTS = 27

# containers
CONTAINER_SEARCH_RADIUS = 64.0
CONTAINER_APPROACH_DISTANCE = 4.0
CONTAINER_STEP_DELAY_S = 0.3
CONTAINER_STOCK = 64

# session
SPAWN_SETTLE_S = 3.0
