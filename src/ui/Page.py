from abc import ABC, abstractmethod
from typing import Any, Dict, List

import streamlit as st


class Page(ABC):
    """Abstract base class for UI pages."""

    @abstractmethod
    def render(self):
        pass

    def render_table(self, rows: List[Dict[str, Any]], empty_text: str = "Nothing to show."):
        if not rows:
            st.info(empty_text)
            return
        st.dataframe(rows, hide_index=True, use_container_width=True)
