import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dispatchboard.db")

# Route optimization is metered against the tenant wallet (prepaid credits)
ROUTE_OPTIMIZATION_COST = Decimal(os.getenv("ROUTE_OPTIMIZATION_COST", "0.50"))

# Gesture tuning - touch needs a long press so a vertical swipe still scrolls the grid
LONG_PRESS_MS = int(os.getenv("LONG_PRESS_MS", "400"))
TOUCH_JITTER_PX = float(os.getenv("TOUCH_JITTER_PX", "10"))
SNAP_MINUTES = int(os.getenv("SNAP_MINUTES", "10"))
MIN_BOOKING_MINUTES = int(os.getenv("MIN_BOOKING_MINUTES", "10"))
AUTO_SCROLL_THRESHOLD_PX = float(os.getenv("AUTO_SCROLL_THRESHOLD_PX", "100"))
AUTO_SCROLL_STEP_PX = float(os.getenv("AUTO_SCROLL_STEP_PX", "10"))

# Calendar grid layout (week view: 7am to 11pm)
GRID_FIRST_HOUR = int(os.getenv("GRID_FIRST_HOUR", "7"))
GRID_HOUR_COUNT = int(os.getenv("GRID_HOUR_COUNT", "17"))
GRID_HOUR_HEIGHT_PX = float(os.getenv("GRID_HOUR_HEIGHT_PX", "60"))
GRID_GUTTER_WIDTH_PX = float(os.getenv("GRID_GUTTER_WIDTH_PX", "64"))

# Optimistic booking edits
# 0 disables the timeout (a stalled call then keeps the optimistic value on screen)
BOOKING_PERSIST_TIMEOUT_SECONDS = float(os.getenv("BOOKING_PERSIST_TIMEOUT_SECONDS", "15"))
# Queue persistence calls per booking; "false" restores last-completion-wins behaviour
SERIALIZE_BOOKING_MUTATIONS = os.getenv("SERIALIZE_BOOKING_MUTATIONS", "true").lower() == "true"

# Geofence check-in radius used when a property has none configured (meters)
DEFAULT_GEOFENCE_RADIUS_M = float(os.getenv("DEFAULT_GEOFENCE_RADIUS_M", "200"))
