import logging
from datetime import date, datetime, time
from typing import Any, Dict

from services.request_service import EDITABLE_FIELDS, RequestService
from workflows.workflow import Workflow

logger = logging.getLogger(__name__)


class RequestUpdateWorkflow(Workflow):
    """Apply an edit-request form to its row and recheck the request's status."""

    def __init__(self, request_service: RequestService):
        self.request_service = request_service

    def _coerce_input(self, input: Any) -> Dict[str, Any]:
        """
        Validate the form payload and keep only editable fields.

        Args:
            input (Any): ``request_id`` plus a ``fields`` dict keyed by request
                column field names.

        Returns:
            Dict[str, Any]: ``request_id`` and the cleaned ``fields``.

        Raises:
            ValueError: If input is invalid.
        """
        if not isinstance(input, dict):
            raise ValueError("Input must be a dict")
        request_id = str(input.get("request_id") or "").strip()
        if not request_id:
            raise ValueError("request_id is required")
        fields = input.get("fields")
        if not isinstance(fields, dict) or not fields:
            raise ValueError("Input must contain a non-empty 'fields' dict")

        cleaned = {}
        for field, value in fields.items():
            if field not in EDITABLE_FIELDS:
                raise ValueError(f"Field {field} cannot be edited")
            if isinstance(value, str):
                value = value.strip()
            elif isinstance(value, time):
                value = value.strftime("%I:%M %p").lstrip("0")
            elif isinstance(value, datetime):
                value = value.date()
            elif value is not None and not isinstance(value, (date, int, bool)):
                raise ValueError(f"Unsupported value for {field}: {value!r}")
            cleaned[field] = value
        return {"request_id": request_id, "fields": cleaned}

    def run(self, input: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._coerce_input(input)
        request_id = payload["request_id"]
        updated = self.request_service.update_request(request_id, payload["fields"])
        status = None
        # a changed head count can flip Assigned <-> Unassigned
        if "riders_needed" in payload["fields"] and "status" not in payload["fields"]:
            request = self.request_service.get_request(request_id, use_cache=False)
            if request is not None and request.status in ("Assigned", "Unassigned"):
                status = self.request_service.update_status_based_on_riders(request_id)
        logger.info(f"Request {request_id} updated ({updated} cells)")
        return {"request_id": request_id, "updated_cells": updated, "status": status}
