import streamlit as st
import streamlit_authenticator as stauth


def load_credentials_from_secrets():
    """Build the dispatcher credentials for Streamlit Authenticator.

    A ``[dispatchers]`` secrets table maps usernames to ``name`` and
    ``password_hash``; a single ``USERNAME`` / ``NAME`` / ``PASSWORD_HASH``
    triple is accepted as well.
    """
    dispatchers = st.secrets.get("dispatchers")
    if dispatchers:
        usernames = {
            username: {"name": entry["name"], "password": entry["password_hash"]}
            for username, entry in dispatchers.items()
        }
    else:
        username = st.secrets.get("USERNAME")
        name = st.secrets.get("NAME")
        password_hash = st.secrets.get("PASSWORD_HASH")
        if not all([username, name, password_hash]):
            raise ValueError("Missing dispatcher credentials in secrets.")
        usernames = {username: {"name": name, "password": password_hash}}
    return {"usernames": usernames}


def authenticate():
    """Gate the console behind the dispatcher login."""
    credentials = load_credentials_from_secrets()
    authenticator = stauth.Authenticate(
        credentials,
        "dispatch_auth_cookie",
        st.secrets.get("AUTH_COOKIE_KEY", "dispatch_auth_signature"),
        cookie_expiry_days=1,
    )

    if st.session_state.get("authentication_status"):
        authenticator.logout(location="sidebar")
        return True

    authenticator.login()
    auth_status = st.session_state.get("authentication_status")
    if auth_status is False:
        st.error("Username/password is incorrect.")
    elif auth_status is None:
        st.info("Please sign in to the dispatch console.")
    return bool(auth_status)
