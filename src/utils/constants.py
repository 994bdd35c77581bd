from enum import Enum

ACTIVITY_LOGGER = "activity"
LOG_SHEET_HEADERS = ["Timestamp", "Type", "Message", "Details"]

ACTIVE_REQUEST_STATUSES = ["New", "Pending", "Assigned"]
PENDING_REQUEST_STATUSES = ["New", "Pending"]
CLOSED_ASSIGNMENT_STATUSES = ["Completed", "Cancelled", "No Show"]
ACTIVE_RIDER_STATUSES = ["active", "available"]

STATE_KEYS = [
    "status_filter",
    "selected_request_id",
    "selected_riders",
    "assignment_in_progress",
    "last_assignment_result",
    "rider_form_in_progress",
]


class CacheKeys:
    SHEET_PREFIX = "sheet_"
    FILTERED_REQUESTS_PREFIX = "filtered_requests_"
    RIDER_INDEX = "rider_index"
    ACTIVE_RIDERS_COUNT = "active_riders_count"
    DASHBOARD_STATS = "dashboard_stats"
    SETTINGS = "settings"

    @staticmethod
    def sheet(sheet_name: str) -> str:
        return f"{CacheKeys.SHEET_PREFIX}{sheet_name}"

    @staticmethod
    def filtered_requests(status: str) -> str:
        return f"{CacheKeys.FILTERED_REQUESTS_PREFIX}{status}"


class Label(Enum):
    REQUEST = "Request"
    RIDERS = "Riders"
    STATUS_FILTER = "Status"
    RIDER_ID = "Rider ID"
    RIDER_NAME = "Full Name"
    PHONE = "Phone Number"
    EMAIL = "Email"
    CARRIER = "Carrier"
    CERTIFICATION = "Certification"
    SUBMIT_BUTTON = "Submit"
    REFRESH_BUTTON = "Refresh data"
    MANDATORY_FIELD_MARKER = "*"


class Pages(Enum):
    DASHBOARD = {
        "key": "dashboard",
        "title": ":material/dashboard: Dashboard",
    }
    REQUESTS = {
        "key": "requests",
        "title": ":material/list_alt: Requests",
    }
    ASSIGN = {
        "key": "assign",
        "title": ":material/two_wheeler: Assign Riders",
    }
    RIDERS = {
        "key": "riders",
        "title": ":material/group: Riders",
    }


class Keys(Enum):
    STATUS_FILTER = "status_filter_select"
    ASSIGN_REQUEST = "assign_request_select"
    ASSIGN_RIDERS = "assign_riders_select"
    EDIT_REQUEST = "edit_request_select"
    BULK_RIDERS = "bulk_riders_select"
    BULK_STATUS = "bulk_status_select"
