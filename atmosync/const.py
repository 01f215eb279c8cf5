"""Constants for the atmosync library."""

# API endpoints
ENDPOINT_SIGNUP = "/api/auth/signup"
ENDPOINT_LOGIN = "/api/auth/login"
ENDPOINT_AUTHORIZE = "/api/auth/authorizeAtmo"
ENDPOINT_WHOAMI = "/api/whoami"
ENDPOINT_HOMESDATA = "/api/homesdata"
ENDPOINT_HOMESTATUS = "/api/homestatus"
ENDPOINT_GETMEASURE = "/api/getmeasure"
ENDPOINT_MESSAGES = "/api/messages"

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_IDENTITY_DB = "data/atmosync.db"

# Request timeouts (seconds)
CONNECT_TIMEOUT = 5
REQUEST_TIMEOUT = 30

# Scheduling (seconds)
POLL_INTERVAL = 60
REFRESH_INTERVAL = 6 * 60 * 60
MESSAGES_INTERVAL = 30
SHUTDOWN_TIMEOUT = REQUEST_TIMEOUT

MEASURE_SCALE = "30min"
EXPECTED_MODULE_FLOOR = 7
SLOW_CYCLE_SECONDS = 2.0
MAX_LOG_MESSAGES = 10

IDENTITY_KEY = "device_identity"

# Provider module type codes
TYPE_MAIN_STATION = "NAMain"
TYPE_THERMOSTAT = "NATherm1"
TYPE_RAIN_GAUGE = "NAModule3"

# Slot names
SLOT_MAIN_STATION = "main_station"
SLOT_THERMOSTAT = "thermostat"
SLOT_RAIN = "rain"
SLOT_OUTDOOR = "outdoor"
SLOT_POOL_HOUSE = "pool_house"
SLOT_HOME_OFFICE = "home_office"
SLOT_BEDROOM = "bedroom"

# Default classification table, evaluated in order. Type rules and
# identity rules match independently, so one module can fill two slots.
DEFAULT_SLOT_RULES = [
    {
        "slot": SLOT_MAIN_STATION,
        "type": TYPE_MAIN_STATION,
        "metrics": ["temperature", "humidity", "co2", "noise"],
    },
    {
        "slot": SLOT_THERMOSTAT,
        "type": TYPE_THERMOSTAT,
        "metrics": ["temperature", "sum_boiler_on", "sp_temperature"],
    },
    {
        "slot": SLOT_RAIN,
        "type": TYPE_RAIN_GAUGE,
        "metrics": ["rain", "sum_rain"],
    },
    {
        "slot": SLOT_OUTDOOR,
        "id": "02:00:00:a9:a2:14",
        "metrics": ["temperature", "humidity"],
    },
    {
        "slot": SLOT_POOL_HOUSE,
        "id": "03:00:00:0e:f9:6c",
        "metrics": ["temperature", "humidity", "co2"],
    },
    {
        "slot": SLOT_HOME_OFFICE,
        "id": "03:00:00:0e:f9:3a",
        "metrics": ["temperature", "humidity", "co2"],
    },
    {
        "slot": SLOT_BEDROOM,
        "id": "03:00:00:0e:eb:16",
        "metrics": ["temperature", "humidity", "co2"],
    },
]
