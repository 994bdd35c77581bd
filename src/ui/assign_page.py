import streamlit as st
from services.data_service import SheetDataService
from services.request_service import RequestService
from services.rider_service import RiderService
from utils.constants import ACTIVE_REQUEST_STATUSES, Keys, Label
from utils.formatting_utils import format_date_for_display, format_time_for_display
from utils.lookup_utils import normalize_name
from ui.net_action import net_action
from ui.state import save_state_to_cache
from ui.Page import Page
from workflows.assignment_workflow import AssignmentWorkflow


class AssignPage(Page):
    """Pick riders for an open request."""

    def __init__(
        self,
        data_service: SheetDataService,
        request_service: RequestService,
        rider_service: RiderService,
        assignment_workflow: AssignmentWorkflow,
    ):
        self.data_service = data_service
        self.request_service = request_service
        self.rider_service = rider_service
        self.assignment_workflow = assignment_workflow

    def _set_assignment_in_progress_true(self):
        st.session_state.assignment_in_progress = True
        save_state_to_cache()

    def _open_requests(self):
        return [
            r
            for r in self.request_service.list_requests()
            if r.status in ACTIVE_REQUEST_STATUSES or r.status == "Unassigned"
        ]

    def _render_current_assignments(self, request_id: str):
        data = self.data_service.get_assignments_data()
        cols = self.data_service.schema.columns.assignments
        self.render_table(
            [
                {
                    "Assignment ID": data.value(row, cols.id),
                    "Rider": data.value(row, cols.rider_name),
                    "Status": data.value(row, cols.status),
                }
                for row in self.data_service.get_assignments_for_request(request_id)
            ],
            "No riders assigned yet.",
        )

    def _render_last_result(self):
        result = st.session_state.last_assignment_result
        if not result:
            return
        st.success(f"Request {result['request_id']} is now {result['status']}.")
        if result["assignment_ids"]:
            st.write("New assignments: " + ", ".join(result["assignment_ids"]))
        if result["cancelled"]:
            st.write("Cancelled: " + ", ".join(result["cancelled"]))
        if result["missing_riders"]:
            st.warning(
                "Not found in the Riders sheet: " + ", ".join(result["missing_riders"])
            )

    def render(self):
        st.title("Assign Riders")
        self._render_last_result()
        try:
            with net_action("Loading requests and riders..."):
                requests = self._open_requests()
                riders = self.rider_service.list_active_riders()
        except Exception as e:
            st.error(str(e))
            return
        if not requests:
            st.info("No open requests to assign.")
            return

        ids = [r.request_id for r in requests]
        preselected = st.session_state.selected_request_id
        request = st.selectbox(
            Label.REQUEST.value,
            requests,
            index=ids.index(preselected) if preselected in ids else 0,
            format_func=lambda r: (
                f"{r.request_id} | {format_date_for_display(r.event_date)} "
                f"{format_time_for_display(r.start_time)} | {r.requester_name}"
            ),
            key=Keys.ASSIGN_REQUEST.value,
        )
        st.caption(
            f"{request.start_location} → {request.end_location} | "
            f"needs {request.riders_needed} | status {request.status}"
        )
        self._render_current_assignments(request.request_id)

        assigned = {
            normalize_name(n) for n in request.riders_assigned.replace(",", "\n").split("\n")
        }
        names = [r.name for r in riders]
        with st.form("assign_form"):
            chosen = st.multiselect(
                Label.RIDERS.value,
                names,
                default=[n for n in names if normalize_name(n) in assigned],
                max_selections=request.riders_needed or None,
                key=Keys.ASSIGN_RIDERS.value,
            )
            submitted = st.form_submit_button(
                Label.SUBMIT_BUTTON.value,
                disabled=st.session_state.assignment_in_progress,
                on_click=self._set_assignment_in_progress_true,
            )

        if not submitted:
            return
        by_name = {r.name: r for r in riders}
        try:
            with net_action("Assigning riders..."):
                result = self.assignment_workflow.run(
                    {
                        "request_id": request.request_id,
                        "riders": [
                            {"name": n, "rider_id": by_name[n].rider_id} for n in chosen
                        ],
                    }
                )
            st.session_state.update(
                {
                    "selected_request_id": request.request_id,
                    "selected_riders": chosen,
                    "last_assignment_result": result,
                }
            )
        except Exception as e:
            st.error(str(e))
        finally:
            st.session_state.assignment_in_progress = False
            save_state_to_cache()
        st.rerun()
