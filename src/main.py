import streamlit as st
from ui.auth import authenticate
from ui.state import ensure_state
from utils.constants import Pages
from utils.logging import attach_sheet_logging, setup_logging
from di.container import Container
from config.config import SETTINGS


@st.cache_resource
def get_container() -> Container:
    """One container per server process, so the data cache outlives reruns."""
    container = Container()
    if SETTINGS.log_to_sheet:
        attach_sheet_logging(container.sheets_client(), container.schema().sheets.log)
    return container


def main():
    setup_logging()
    st.set_page_config(page_title="Escort Dispatch", layout="wide")
    if not authenticate():
        return
    ensure_state()
    container = get_container()
    container.context().begin_request()

    pages = [Pages.DASHBOARD, Pages.REQUESTS, Pages.ASSIGN, Pages.RIDERS]
    st.sidebar.title("Navigation")
    selection = st.sidebar.radio(
        "Navigation",
        [page.value["key"] for page in pages],
        format_func=lambda x: {page.value["key"]: page.value["title"] for page in pages}[x],
        label_visibility="hidden",
    )

    if selection == Pages.DASHBOARD.value["key"]:
        container.dashboard_page().render()
    elif selection == Pages.REQUESTS.value["key"]:
        container.requests_page().render()
    elif selection == Pages.ASSIGN.value["key"]:
        container.assign_page().render()
    elif selection == Pages.RIDERS.value["key"]:
        container.riders_page().render()


if __name__ == "__main__":
    main()
