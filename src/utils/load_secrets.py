import json
import os
import streamlit as st
from streamlit.errors import StreamlitAPIException


def load_env_vars():
    try:
        secrets = st.secrets.to_dict()
    except (FileNotFoundError, StreamlitAPIException):
        # no secrets.toml: plain environment variables only
        return
    for k, v in secrets.items():
        # tables such as the service account block travel as JSON strings
        value = json.dumps(v) if isinstance(v, dict) else str(v)
        os.environ.setdefault(k, value)
