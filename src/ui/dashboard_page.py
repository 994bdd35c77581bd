import streamlit as st
from cache.context import DispatchContext
from config.config import SETTINGS
from services.data_service import SheetDataService
from services.request_service import RequestService
from utils.constants import Label
from utils.formatting_utils import (
    format_date_for_display,
    format_time_for_display,
    local_now,
)
from ui.net_action import net_action
from ui.Page import Page


class DashboardPage(Page):
    """Headline numbers and the queue of open requests."""

    def __init__(
        self,
        context: DispatchContext,
        data_service: SheetDataService,
        request_service: RequestService,
    ):
        self.context = context
        self.data_service = data_service
        self.request_service = request_service

    def _render_stats(self):
        with net_action("Loading dashboard..."):
            stats = self.data_service.calculate_dashboard_statistics()
        cols = st.columns(3)
        cols[0].metric("Active riders", stats.active_riders)
        cols[1].metric("Pending requests", stats.pending_requests)
        cols[2].metric("Assignments today", stats.today_assignments)
        cols = st.columns(3)
        cols[0].metric("Next 7 days", stats.week_assignments)
        cols[1].metric("Total requests", stats.total_requests)
        cols[2].metric("Completed", stats.completed_requests)

    def _render_open_requests(self):
        st.subheader("Open requests")
        requests = self.request_service.list_open_requests()
        self.render_table(
            [
                {
                    "Request ID": r.request_id,
                    "Event Date": format_date_for_display(r.event_date),
                    "Start": format_time_for_display(r.start_time),
                    "Requester": r.requester_name,
                    "Type": r.request_type,
                    "Needed": r.riders_needed,
                    "Assigned": r.riders_assigned.replace("\n", ", "),
                    "Status": r.status,
                }
                for r in requests
            ],
            "No open requests.",
        )

    def _render_rider_schedule(self):
        st.subheader("Rider schedule, next 7 days")
        today = local_now(SETTINGS.timezone).date()
        schedule = self.data_service.get_rider_schedule(today)
        self.render_table(
            [
                {
                    "Date": format_date_for_display(day),
                    "Riders": ", ".join(names),
                    "Count": len(names),
                }
                for day, names in schedule.items()
                if names
            ],
            "No riders scheduled this week.",
        )

    def _render_settings(self):
        settings = self.data_service.get_settings()
        if not settings:
            return
        with st.expander("Dispatch settings"):
            for key, value in settings.items():
                st.markdown(f"**{key}:** {value}")

    def render(self):
        st.title("Dispatch Dashboard")
        if st.button(Label.REFRESH_BUTTON.value):
            self.data_service.clear_dashboard_cache()
        try:
            self._render_stats()
            self._render_open_requests()
            self._render_rider_schedule()
            self._render_settings()
        except Exception as e:
            st.error(str(e))
        with st.expander("Cache"):
            st.json(self.context.cache.stats())
