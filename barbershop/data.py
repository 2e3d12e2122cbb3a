# barbershop/data.py

from decimal import Decimal

# Loyalty policy
POINTS_TO_REDEEM = 10
DISCOUNT_VALUE = Decimal("20.00")
POINTS_PER_COMPLETION = 1

# Minimum notice for same-day bookings
MIN_ADVANCE_MINUTES = 60

# Revenue chart windows
RECENT_DAYS = 14

# Collections in the document store
SERVICES = "services"
BARBERS = "barbers"
APPOINTMENTS = "appointments"
LOYALTY_PROFILES = "loyalty_profiles"
CONFIG = "config"

# name -> (price, duration in minutes)
DEFAULT_SERVICES = {
    "Haircut": (Decimal("20.00"), 30),
    "Fade": (Decimal("25.00"), 30),
    "Beard Trim": (Decimal("12.00"), 15),
    "Cut and Beard": (Decimal("30.00"), 45),
}

shop_settings = {
    "open_time": "09:00",
    "close_time": "18:00",
    "slot_interval_minutes": 30,
    "monthly_goal": Decimal("3000.00"),
    "closed_weekdays": [6],  # 0=Mon ... 6=Sun
}
