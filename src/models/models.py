from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SheetNames(BaseModel):
    dashboard: str = "Dashboard"
    requests: str = "Requests"
    riders: str = "Riders"
    assignments: str = "Assignments"
    settings: str = "Settings"
    log: str = "Log"


class RequestColumns(BaseModel):
    id: str = "Request ID"
    date: str = "Date"
    requester_name: str = "Requester Name"
    requester_contact: str = "Requester Contact"
    type: str = "Request Type"
    event_date: str = "Event Date"
    start_time: str = "Start Time"
    end_time: str = "End Time"
    start_location: str = "Start Location"
    end_location: str = "End Location"
    secondary_location: str = "Secondary End Location"
    riders_needed: str = "Riders Needed"
    requirements: str = "Special Requirements"
    status: str = "Status"
    notes: str = "Notes"
    riders_assigned: str = "Riders Assigned"
    courtesy: str = "Courtesy"
    last_updated: str = "Last Updated"


class RiderColumns(BaseModel):
    rider_id: str = "Rider ID"
    name: str = "Full Name"
    phone: str = "Phone Number"
    carrier: str = "Carrier"
    email: str = "Email"
    status: str = "Status"
    certification: str = "Certification"
    total_assignments: str = "Total Assignments"
    last_assignment_date: str = "Last Assignment Date"


class AssignmentColumns(BaseModel):
    id: str = "Assignment ID"
    request_id: str = "Request ID"
    event_date: str = "Event Date"
    start_time: str = "Start Time"
    end_time: str = "End Time"
    start_location: str = "Start Location"
    end_location: str = "End Location"
    secondary_location: str = "Secondary End Location"
    rider_name: str = "Rider Name"
    rider_id: str = "JP Number"
    status: str = "Status"
    created_date: str = "Created Date"
    notified: str = "Notified"
    completed_date: str = "Completed Date"
    notes: str = "Notes"


class SettingsColumns(BaseModel):
    key: str = "Setting"
    value: str = "Value"


class ColumnSchema(BaseModel):
    requests: RequestColumns = Field(default_factory=RequestColumns)
    riders: RiderColumns = Field(default_factory=RiderColumns)
    assignments: AssignmentColumns = Field(default_factory=AssignmentColumns)
    settings: SettingsColumns = Field(default_factory=SettingsColumns)


class Options(BaseModel):
    request_types: List[str] = ["Wedding", "Funeral", "Float Movement", "VIP", "Other"]
    request_statuses: List[str] = [
        "New",
        "Pending",
        "Assigned",
        "Unassigned",
        "In Progress",
        "Completed",
        "Cancelled",
    ]
    rider_statuses: List[str] = ["Active", "Inactive", "Vacation", "Training", "Suspended"]
    assignment_statuses: List[str] = [
        "Assigned",
        "Confirmed",
        "En Route",
        "In Progress",
        "Completed",
        "Cancelled",
        "No Show",
    ]
    max_riders_per_request: int = 4


class CacheSchema(BaseModel):
    default_ttl_seconds: int = 300
    ttl_seconds: Dict[str, int] = Field(default_factory=dict)

    def ttl_for(self, key: str) -> int:
        return self.ttl_seconds.get(key, self.default_ttl_seconds)


class SheetSchema(BaseModel):
    sheets: SheetNames = Field(default_factory=SheetNames)
    columns: ColumnSchema = Field(default_factory=ColumnSchema)
    options: Options = Field(default_factory=Options)
    cache: CacheSchema = Field(default_factory=CacheSchema)


class SheetData(BaseModel):
    """A fetched tab: header row, data rows and the header projection."""

    sheet_name: str
    headers: List[str] = Field(default_factory=list)
    data: List[List[Any]] = Field(default_factory=list)
    column_map: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def empty(cls, sheet_name: str) -> "SheetData":
        return cls(sheet_name=sheet_name)

    def is_empty(self) -> bool:
        return not self.data

    def index_of(self, column: str) -> Optional[int]:
        return self.column_map.get(column)

    def value(self, row: List[Any], column: str) -> Any:
        idx = self.column_map.get(column)
        if idx is None or idx >= len(row):
            return None
        return row[idx]


class RiderOffsets(BaseModel):
    name: Optional[int] = None
    rider_id: Optional[int] = None
    status: Optional[int] = None
    phone: Optional[int] = None
    email: Optional[int] = None
    carrier: Optional[int] = None
    certification: Optional[int] = None
    total_assignments: Optional[int] = None
    last_assignment_date: Optional[int] = None


class RiderEntry(BaseModel):
    row: List[Any]
    position: int


class RiderIndex(BaseModel):
    column_map: Dict[str, int] = Field(default_factory=dict)
    offsets: RiderOffsets = Field(default_factory=RiderOffsets)
    riders: List[List[Any]] = Field(default_factory=list)
    by_name: Dict[str, RiderEntry] = Field(default_factory=dict)
    by_id: Dict[str, RiderEntry] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.riders)


class Rider(BaseModel):
    rider_id: str = ""
    name: str = ""
    phone: str = ""
    email: str = ""
    carrier: str = ""
    status: str = "Active"
    certification: str = ""
    total_assignments: int = 0
    last_assignment_date: str = ""


class EscortRequest(BaseModel):
    request_id: str
    row_number: int
    requester_name: str = ""
    request_type: str = ""
    event_date: Any = None
    start_time: Any = None
    end_time: Any = None
    start_location: str = ""
    end_location: str = ""
    secondary_location: str = ""
    riders_needed: int = 0
    riders_assigned: str = ""
    status: str = ""
    notes: str = ""


class SelectedRider(BaseModel):
    name: str
    rider_id: str = ""


class DashboardStats(BaseModel):
    active_riders: int = 0
    pending_requests: int = 0
    today_assignments: int = 0
    week_assignments: int = 0
    total_requests: int = 0
    completed_requests: int = 0


class AssignmentInput(BaseModel):
    request_id: str
    riders: List[SelectedRider] = Field(default_factory=list)


class AssignmentResult(BaseModel):
    request_id: str
    status: str
    added: List[str] = Field(default_factory=list)
    cancelled: List[str] = Field(default_factory=list)
    assignment_ids: List[str] = Field(default_factory=list)
    missing_riders: List[str] = Field(default_factory=list)
