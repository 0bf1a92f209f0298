"""
SafeSea marine safety dashboard - Streamlit UI entry point.

Presentation only: every backend interaction goes through `safesea.services`.
"""

import streamlit as st

# Load .env first so endpoint and timeout settings are picked up
from safesea.utils.config import load_config, log_file, log_level
load_config()

from safesea.domains.models import Degraded, Err
from safesea.services.auth_session import LoginError
from safesea.services.container import bootstrap, build_services
from safesea.utils.logger import setup_logger, get_logger

setup_logger("safesea", level=log_level(), log_file=log_file())
log = get_logger()

st.set_page_config(page_title="SafeSea", layout="wide")
st.title("Marine Safety System")


@st.cache_resource
def get_services():
    services = build_services()
    bootstrap(services)
    return services


with st.spinner("Starting SafeSea..."):
    services = get_services()
auth = services.auth


def render_result(title, result, columns=None):
    st.subheader(title)
    if isinstance(result, Err):
        st.error(f"{title} unavailable: {result.error}")
        return
    if isinstance(result, Degraded):
        st.warning(f"Backend unreachable, showing placeholder data ({result.reason})")
    rows = result.data or []
    if not rows:
        st.caption("No records.")
        return
    st.dataframe(rows, column_order=columns, use_container_width=True)


with st.sidebar:
    st.header("Connection")
    st.caption(f"API: `{services.endpoints.active_url}`")
    if st.button("Test all connections", use_container_width=True):
        for report in services.endpoints.test_all_connections():
            if report.ok:
                st.success(f"{report.url} · {report.latency_ms:.0f} ms")
            else:
                st.error(f"{report.url} · {report.detail}")
    if len(services.endpoints.candidates) > 1:
        choice = st.selectbox(
            "Backend",
            services.endpoints.candidates,
            index=services.endpoints.candidates.index(services.endpoints.active_url),
        )
        if choice != services.endpoints.active_url:
            services.endpoints.set_active(choice)
            st.rerun()

    if auth.is_authenticated:
        st.divider()
        st.caption(f"Signed in as **{auth.session.username}**")
        if st.button("Log out", use_container_width=True):
            auth.logout()
            st.rerun()

if not auth.is_authenticated:
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in")
    if submitted:
        try:
            with st.spinner("Signing in..."):
                auth.login(username, password)
            st.rerun()
        except LoginError as e:
            st.error(e.message)
    st.stop()

tab_alerts, tab_weather, tab_location = st.tabs(["Alerts", "Weather", "Location"])

with tab_alerts:
    alerts = services.client.get_alerts()
    render_result("Alerts", alerts, ["Severity", "AlertType", "Message", "Timestamp"])
    if not alerts.degraded and alerts.data:
        ids = [a.get("AlertID") for a in alerts.data if isinstance(a, dict) and a.get("AlertID")]
        if ids:
            with st.form("ack"):
                alert_id = st.selectbox("Acknowledge alert", ids)
                note = st.text_input("Response message")
                if st.form_submit_button("Acknowledge"):
                    try:
                        services.client.acknowledge_alert(alert_id, note)
                        st.success(f"Alert {alert_id} acknowledged")
                    except Exception as e:
                        log.warning("Acknowledge failed: %s", e)
                        st.error(str(e))

with tab_weather:
    render_result("Weather", services.client.get_weather())

with tab_location:
    render_result("Location", services.client.get_locations())

if not auth.is_authenticated:
    # A request above was rejected with 401 and the session was invalidated
    st.rerun()
