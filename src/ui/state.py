import streamlit as st
from utils.constants import STATE_KEYS


def _dispatcher() -> str:
    return st.session_state.get("username") or ""


@st.cache_data(ttl=3600)
def _fetch_state_data(dispatcher: str):
    """Snapshot the session state of one signed-in dispatcher."""
    return {k: st.session_state[k] for k in STATE_KEYS}


def load_state_from_cache():
    """Restore this dispatcher's saved values into session state."""
    saved_state = _fetch_state_data(_dispatcher())
    for k in STATE_KEYS:
        st.session_state[k] = saved_state[k]


def save_state_to_cache():
    """Save current session state into cache."""
    _fetch_state_data.clear()
    _fetch_state_data(_dispatcher())


def ensure_state():
    """Ensure default state values exist, then load cached state."""
    defaults = {
        "status_filter": "All",
        "selected_request_id": None,
        "selected_riders": [],
        "assignment_in_progress": False,
        "last_assignment_result": None,
        "rider_form_in_progress": False,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)

    load_state_from_cache()
