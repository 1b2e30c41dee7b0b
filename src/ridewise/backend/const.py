"""Constants for the RideWise backend API."""

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_API_URI = "api"

STATIONS_ENDPOINT = "/stations"
RESERVE_ENDPOINT = "/reserve"
RESERVATIONS_ENDPOINT = "/reservations"

RETRY_AFTER_HEADER = "Retry-After"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "ridewise-client",
}
