import streamlit as st
from models.models import SheetSchema
from services.rider_service import RiderService
from utils.constants import Keys, Label
from ui.net_action import net_action
from ui.state import save_state_to_cache
from ui.Page import Page


class RidersPage(Page):
    """Roster view, new rider form and bulk status changes."""

    def __init__(self, rider_service: RiderService, schema: SheetSchema):
        self.rider_service = rider_service
        self.schema = schema

    def _set_rider_form_in_progress_true(self):
        st.session_state.rider_form_in_progress = True
        save_state_to_cache()

    def _render_add_form(self):
        marker = Label.MANDATORY_FIELD_MARKER.value
        with st.form("rider_form", clear_on_submit=True):
            rider_id = st.text_input(Label.RIDER_ID.value + marker)
            name = st.text_input(Label.RIDER_NAME.value + marker)
            phone = st.text_input(Label.PHONE.value + marker)
            email = st.text_input(Label.EMAIL.value)
            carrier = st.text_input(Label.CARRIER.value)
            certification = st.text_input(Label.CERTIFICATION.value)
            status = st.selectbox("Status", self.schema.options.rider_statuses)
            submitted = st.form_submit_button(
                Label.SUBMIT_BUTTON.value,
                disabled=st.session_state.rider_form_in_progress,
                on_click=self._set_rider_form_in_progress_true,
            )

        if not submitted:
            return
        try:
            with net_action("Adding rider..."):
                rider = self.rider_service.add_rider(
                    {
                        "rider_id": rider_id,
                        "name": name,
                        "phone": phone,
                        "email": email,
                        "carrier": carrier,
                        "certification": certification,
                        "status": status,
                    }
                )
            st.success(f"Rider {rider.name} added.")
        except Exception as e:
            st.error(str(e))
        finally:
            st.session_state.rider_form_in_progress = False
            save_state_to_cache()

    def _render_bulk_status(self, riders):
        with st.form("bulk_status_form"):
            ids = st.multiselect(
                Label.RIDERS.value,
                [r.rider_id for r in riders if r.rider_id],
                format_func=lambda rid: next(
                    (f"{r.name} ({rid})" for r in riders if r.rider_id == rid), rid
                ),
                key=Keys.BULK_RIDERS.value,
            )
            status = st.selectbox(
                "New status", self.schema.options.rider_statuses, key=Keys.BULK_STATUS.value
            )
            submitted = st.form_submit_button("Update status")
        if not submitted or not ids:
            return
        try:
            with net_action("Updating riders..."):
                count = self.rider_service.bulk_update_status(ids, status)
            st.success(f"{count} rider(s) set to {status}.")
        except Exception as e:
            st.error(str(e))

    def render(self):
        st.title("Riders")
        try:
            with net_action("Loading riders..."):
                riders = self.rider_service.list_riders()
        except Exception as e:
            st.error(str(e))
            return
        self.render_table([r.model_dump() for r in riders], "No riders yet.")
        tab_add, tab_bulk = st.tabs(["Add rider", "Bulk status"])
        with tab_add:
            self._render_add_form()
        with tab_bulk:
            self._render_bulk_status(riders)
