import streamlit as st
from models.models import SheetSchema
from services.request_service import RequestService
from utils.constants import Keys, Label
from utils.formatting_utils import (
    format_date_for_display,
    format_time_for_display,
    parse_date,
)
from ui.net_action import net_action
from ui.state import save_state_to_cache
from ui.Page import Page
from workflows.request_update_workflow import RequestUpdateWorkflow


class RequestsPage(Page):
    """List, create and edit escort requests."""

    def __init__(
        self,
        request_service: RequestService,
        request_update_workflow: RequestUpdateWorkflow,
        schema: SheetSchema,
    ):
        self.request_service = request_service
        self.request_update_workflow = request_update_workflow
        self.schema = schema

    def _render_table(self):
        statuses = ["All", *self.schema.options.request_statuses]
        current = st.session_state.status_filter
        status = st.selectbox(
            Label.STATUS_FILTER.value,
            statuses,
            index=statuses.index(current) if current in statuses else 0,
            key=Keys.STATUS_FILTER.value,
        )
        if status != current:
            st.session_state.status_filter = status
            save_state_to_cache()

        requests = self.request_service.list_requests(status)
        st.caption(f"{len(requests)} request(s)")
        self.render_table(
            [
                {
                    "Request ID": r.request_id,
                    "Event Date": format_date_for_display(r.event_date),
                    "Start": format_time_for_display(r.start_time),
                    "End": format_time_for_display(r.end_time),
                    "Requester": r.requester_name,
                    "Type": r.request_type,
                    "From": r.start_location,
                    "To": r.end_location,
                    "Needed": r.riders_needed,
                    "Assigned": r.riders_assigned.replace("\n", ", "),
                    "Status": r.status,
                }
                for r in requests
            ],
            "No requests with this status.",
        )
        return requests

    def _render_create_form(self):
        options = self.schema.options
        with st.form("new_request_form", clear_on_submit=True):
            requester_name = st.text_input("Requester Name" + Label.MANDATORY_FIELD_MARKER.value)
            requester_contact = st.text_input("Requester Contact")
            request_type = st.selectbox("Request Type", options.request_types)
            event_date = st.date_input("Event Date", value=None)
            start_time = st.time_input("Start Time", value=None)
            end_time = st.time_input("End Time", value=None)
            start_location = st.text_input("Start Location" + Label.MANDATORY_FIELD_MARKER.value)
            end_location = st.text_input("End Location" + Label.MANDATORY_FIELD_MARKER.value)
            secondary_location = st.text_input("Secondary End Location")
            riders_needed = st.number_input(
                "Riders Needed", min_value=1, max_value=options.max_riders_per_request, value=1
            )
            courtesy = st.checkbox("Courtesy")
            requirements = st.text_area("Special Requirements")
            notes = st.text_area("Notes")
            submitted = st.form_submit_button(Label.SUBMIT_BUTTON.value)

        if not submitted:
            return
        try:
            with net_action("Creating request..."):
                request_id = self.request_service.create_request(
                    {
                        "requester_name": requester_name,
                        "requester_contact": requester_contact,
                        "type": request_type,
                        "event_date": event_date,
                        "start_time": start_time.strftime("%I:%M %p").lstrip("0")
                        if start_time
                        else None,
                        "end_time": end_time.strftime("%I:%M %p").lstrip("0") if end_time else "",
                        "start_location": start_location,
                        "end_location": end_location,
                        "secondary_location": secondary_location,
                        "riders_needed": riders_needed,
                        "courtesy": courtesy,
                        "requirements": requirements,
                        "notes": notes,
                    }
                )
            st.success(f"Request {request_id} created.")
        except Exception as e:
            st.error(str(e))

    def _render_edit_form(self, requests):
        if not requests:
            return
        options = self.schema.options
        selected = st.selectbox(
            Label.REQUEST.value,
            requests,
            format_func=lambda r: f"{r.request_id} - {r.requester_name}",
            key=Keys.EDIT_REQUEST.value,
        )
        if selected is None:
            return
        with st.form("edit_request_form"):
            status = st.selectbox(
                "Status",
                options.request_statuses,
                index=options.request_statuses.index(selected.status)
                if selected.status in options.request_statuses
                else 0,
            )
            event_date = st.date_input("Event Date", value=parse_date(selected.event_date))
            start_time = st.text_input("Start Time", format_time_for_display(selected.start_time))
            end_time = st.text_input("End Time", format_time_for_display(selected.end_time))
            start_location = st.text_input("Start Location", selected.start_location)
            end_location = st.text_input("End Location", selected.end_location)
            riders_needed = st.number_input(
                "Riders Needed",
                min_value=1,
                max_value=options.max_riders_per_request,
                value=min(max(selected.riders_needed, 1), options.max_riders_per_request),
            )
            notes = st.text_area("Notes", selected.notes)
            submitted = st.form_submit_button("Save changes")

        if not submitted:
            return
        fields = {
            "event_date": event_date,
            "start_time": start_time,
            "end_time": end_time,
            "start_location": start_location,
            "end_location": end_location,
            "riders_needed": int(riders_needed),
            "notes": notes,
        }
        if status != selected.status:
            fields["status"] = status
        fields = {k: v for k, v in fields.items() if v is not None}
        try:
            with net_action("Saving request..."):
                output = self.request_update_workflow.run(
                    {"request_id": selected.request_id, "fields": fields}
                )
            st.success(f"Request {output['request_id']} saved.")
        except Exception as e:
            st.error(str(e))

    def render(self):
        st.title("Requests")
        try:
            requests = self._render_table()
        except Exception as e:
            st.error(str(e))
            return
        tab_new, tab_edit = st.tabs(["New request", "Edit request"])
        with tab_new:
            self._render_create_form()
        with tab_edit:
            self._render_edit_form(requests)
