import logging
import time
from contextlib import contextmanager

import streamlit as st

logger = logging.getLogger(__name__)


@contextmanager
def net_action(text: str):
    started = time.perf_counter()
    try:
        with st.spinner(text, show_time=True):
            yield
    finally:
        logger.info(f"{text.rstrip('.')} took {time.perf_counter() - started:.2f}s")
