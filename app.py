"""
app.py — Streamlit demo shell for the status bar sampling core.

Launch with:
    streamlit run app.py

The dashboard plays the part of the status bar: it turns sidebar controls
into raw settings, treats every auto-refresh as a tick, and draws whatever
render instructions the core hands back. Traffic comes from simulated
counters, so no device or network statistics API is needed.
"""

import sys
import os

# ── Ensure project root is on sys.path so `config` / `statusbar` resolve ──
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import logging
from datetime import datetime

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from config import (
    HISTORY_LENGTH,
    KEY_CLOCK_24_HOUR,
    KEY_CLOCK_AM_PM,
    KEY_CLOCK_COLOR,
    KEY_CLOCK_DOW,
    KEY_TRAFFIC_COLOR_DOWN,
    KEY_TRAFFIC_COLOR_ICON,
    KEY_TRAFFIC_COLOR_UP,
    KEY_TRAFFIC_HIDE,
    KEY_TRAFFIC_ICON,
    KEY_TRAFFIC_INTERVAL,
    KEY_TRAFFIC_STATE,
    KEY_TRAFFIC_TEXT,
    KEY_TRAFFIC_UNIT,
    LOG_LEVEL,
    MASK_DOWN,
    MASK_UP,
    REFRESH_INTERVAL_MS,
)
from statusbar.controllers import StatusClock, TrafficMonitor
from statusbar.demo_data import FakeTrafficCounters, get_fake_clock_settings, get_fake_settings
from statusbar.presenter import append_history, hex_color, to_html
from statusbar.rate_calculator import format_speed

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ═══════════════════════════════════════════════════════════════════════
#  PAGE CONFIG
# ═══════════════════════════════════════════════════════════════════════

st.set_page_config(
    page_title="Status Bar Sampler",
    page_icon="📶",
    layout="wide",
    initial_sidebar_state="expanded",
)

_STATUS_BAR_CSS = """
<style>
.stApp, [data-testid="stAppViewContainer"] {
    background: linear-gradient(160deg, #060714 0%, #0b1120 30%, #140e2e 55%, #0b1120 80%, #060714 100%) !important;
    color: #eef1f5 !important;
}
.status-bar {
    display: flex;
    justify-content: flex-end;
    align-items: center;
    gap: 18px;
    background: rgba(0,0,0,0.85);
    border: 1px solid rgba(255,255,255,0.07);
    border-radius: 14px;
    padding: 8px 18px;
    min-height: 56px;
    font-family: 'Roboto', sans-serif;
}
.status-bar .traffic { text-align: right; line-height: 1.1; }
.status-bar .hidden { opacity: 0.15; }
</style>
"""

st.markdown(_STATUS_BAR_CSS, unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════════════════════
#  SESSION STATE INIT
# ═══════════════════════════════════════════════════════════════════════

def _remember(key: str):
    """Build a host callback that stores its argument in session state."""
    def _store(value):
        st.session_state[key] = value
    return _store


if "auto_refresh_on" not in st.session_state:
    st.session_state.auto_refresh_on = True
if "rate_history" not in st.session_state:
    st.session_state.rate_history = []
if "traffic_instruction" not in st.session_state:
    st.session_state.traffic_instruction = None
    st.session_state.traffic_visible = False
if "clock_instruction" not in st.session_state:
    st.session_state.clock_instruction = None
    st.session_state.clock_visible = False
if "counters" not in st.session_state:
    st.session_state.counters = FakeTrafficCounters()
if "monitor" not in st.session_state:
    st.session_state.traffic_settings = get_fake_settings()
    st.session_state.monitor = TrafficMonitor(
        st.session_state.counters,
        render=_remember("traffic_instruction"),
        set_visible=_remember("traffic_visible"),
        raw_settings=st.session_state.traffic_settings,
        own_timer=False,
    )
    st.session_state.monitor.attach()
if "status_clock" not in st.session_state:
    st.session_state.clock_settings = get_fake_clock_settings()
    st.session_state.status_clock = StatusClock(
        render=_remember("clock_instruction"),
        set_visible=_remember("clock_visible"),
        raw_settings=st.session_state.clock_settings,
        own_timer=False,
    )
    st.session_state.status_clock.attach()

monitor: TrafficMonitor = st.session_state.monitor
status_clock: StatusClock = st.session_state.status_clock


def _argb(hex_rgb: str) -> int:
    """'#rrggbb' from a colour picker → opaque ARGB int."""
    return 0xFF000000 | int(hex_rgb.lstrip("#"), 16)


# ═══════════════════════════════════════════════════════════════════════
#  SIDEBAR — settings provider & system events
# ═══════════════════════════════════════════════════════════════════════

with st.sidebar:
    st.title("📶 Network Traffic")

    defaults = st.session_state.traffic_settings
    show_up = st.checkbox("Show upload", value=bool(defaults[KEY_TRAFFIC_STATE] & MASK_UP))
    show_down = st.checkbox("Show download", value=bool(defaults[KEY_TRAFFIC_STATE] & MASK_DOWN))
    unit = st.radio("Unit", ["Bytes (kB/s)", "Bits (kb/s)"], horizontal=True)
    show_text = st.toggle("U / D labels", value=bool(defaults[KEY_TRAFFIC_TEXT]))
    show_icon = st.toggle("Icon", value=bool(defaults[KEY_TRAFFIC_ICON]))
    hide_idle = st.toggle("Hide when idle", value=bool(defaults[KEY_TRAFFIC_HIDE]))
    interval = st.number_input("Interval (ms)", min_value=0, max_value=10_000,
                               value=defaults[KEY_TRAFFIC_INTERVAL], step=250,
                               help="0 falls back to the 1000 ms default")
    c1, c2 = st.columns(2)
    color_up = c1.color_picker("Up", hex_color(defaults[KEY_TRAFFIC_COLOR_UP]))
    color_down = c2.color_picker("Down", hex_color(defaults[KEY_TRAFFIC_COLOR_DOWN]))

    raw_traffic = {
        KEY_TRAFFIC_STATE: (MASK_UP if show_up else 0) | (MASK_DOWN if show_down else 0),
        KEY_TRAFFIC_TEXT: int(show_text),
        KEY_TRAFFIC_ICON: int(show_icon),
        KEY_TRAFFIC_HIDE: int(hide_idle),
        KEY_TRAFFIC_UNIT: 1 if unit.startswith("Bytes") else 0,
        KEY_TRAFFIC_INTERVAL: int(interval),
        KEY_TRAFFIC_COLOR_UP: _argb(color_up),
        KEY_TRAFFIC_COLOR_DOWN: _argb(color_down),
        KEY_TRAFFIC_COLOR_ICON: defaults[KEY_TRAFFIC_COLOR_ICON],
    }
    if raw_traffic != st.session_state.traffic_settings:
        st.session_state.traffic_settings = raw_traffic
        monitor.on_config_changed(raw_traffic)

    st.divider()
    st.subheader("System events")
    screen_on = st.toggle("Screen on", value=True)
    link_active = st.toggle("Network connected", value=True)
    if screen_on != st.session_state.get("screen_on", True):
        monitor.on_screen_state(screen_on)
    if link_active != st.session_state.get("link_active", True):
        monitor.on_connectivity_changed(link_active)
    st.session_state.screen_on = screen_on
    st.session_state.link_active = link_active

    if st.button("🔁 Simulate counter reset"):
        st.session_state.counters.reset()

    st.divider()
    st.toggle("Auto-Refresh", key="auto_refresh_on",
              help="Tick once per configured interval")
    refreshed = monitor.on_tick(periodic=False) if st.button("🔄 Refresh Now") else None


# Only auto-refresh when enabled; every rerun is one tick
if st.session_state.auto_refresh_on:
    st_autorefresh(interval=monitor.config.interval_ms or REFRESH_INTERVAL_MS, key="auto_refresh")
    refreshed = monitor.on_tick(periodic=True) or refreshed
status_clock.on_tick()


# ═══════════════════════════════════════════════════════════════════════
#  HISTORY
# ═══════════════════════════════════════════════════════════════════════

rates = monitor.last_rates
st.session_state.rate_history = append_history(
    st.session_state.rate_history,
    refreshed,
    rates,
    datetime.now().strftime("%H:%M:%S"),
    HISTORY_LENGTH,
)


# ═══════════════════════════════════════════════════════════════════════
#  STATUS BAR PREVIEW
# ═══════════════════════════════════════════════════════════════════════

st.title("📶 Status Bar Sampler")
st.caption("Network traffic and clock indicators driven by simulated counters")


def _status_bar_html() -> str:
    parts = []
    traffic = st.session_state.traffic_instruction
    if traffic is not None:
        css = "traffic" if st.session_state.traffic_visible else "traffic hidden"
        icon = " ⇅" if traffic.icon_id else ""
        parts.append(
            f"<div class='{css}' style='font-size:{traffic.text_size_px // 2}px'>"
            f"{to_html(traffic)}{icon}</div>"
        )
    clock = st.session_state.clock_instruction
    if clock is not None and st.session_state.clock_visible:
        parts.append(
            f"<div style='color:{hex_color(clock.text_color)};font-size:22px'>{to_html(clock)}</div>"
        )
    return f"<div class='status-bar'>{''.join(parts)}</div>"


st.markdown(_status_bar_html(), unsafe_allow_html=True)

tab_traffic, tab_history, tab_clock = st.tabs([
    "📡 Traffic",
    "📈 History",
    "🕒 Clock",
])

# ─── Tab 1: Traffic ──────────────────────────────────────────────────

with tab_traffic:
    col1, col2, col3, col4 = st.columns(4)
    cfg = monitor.config
    col1.metric("State", "running" if monitor.running else "stopped")
    col2.metric("Interval", f"{cfg.interval_ms} ms")
    col3.metric("Upload", rates.up.text if rates else "—")
    col4.metric("Download", rates.down.text if rates else "—")

    instruction = st.session_state.traffic_instruction
    if instruction is not None:
        st.markdown("**Last render instruction**")
        st.dataframe(pd.DataFrame([{
            "Text": instruction.text.replace("\n", " | "),
            "Visible": st.session_state.traffic_visible,
            "Text size (px)": instruction.text_size_px,
            "Icon": instruction.icon_id or "none",
            "State mask": f"0x{cfg.state_mask:08X}",
        }]), use_container_width=True, hide_index=True)

# ─── Tab 2: History ──────────────────────────────────────────────────

with tab_history:
    history = st.session_state.rate_history
    if len(history) >= 2:
        df_hist = pd.DataFrame(history)
        unit_system = monitor.config.unit_system

        st.subheader("Throughput Over Time")
        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=df_hist["time"], y=df_hist["down_bps"] / unit_system.base,
            mode="lines+markers", name="Download",
            line=dict(color=hex_color(monitor.config.color_down), width=2),
        ))
        fig.add_trace(go.Scatter(
            x=df_hist["time"], y=df_hist["up_bps"] / unit_system.base,
            mode="lines+markers", name="Upload",
            line=dict(color=hex_color(monitor.config.color_up), width=2),
        ))
        fig.update_layout(
            yaxis=dict(title=f"k{unit_system.symbol}", gridcolor="rgba(255,255,255,0.06)"),
            xaxis=dict(title="Time", gridcolor="rgba(255,255,255,0.06)"),
            height=380,
            legend=dict(orientation="h", yanchor="bottom", y=1.02),
            margin=dict(t=40, b=40),
            paper_bgcolor="rgba(0,0,0,0)",
            plot_bgcolor="rgba(0,0,0,0)",
            font=dict(color="rgba(255,255,255,0.8)"),
        )
        st.plotly_chart(fig, use_container_width=True)

        df_hist["Download"] = df_hist["down_bps"].map(lambda s: format_speed(s, unit_system))
        df_hist["Upload"] = df_hist["up_bps"].map(lambda s: format_speed(s, unit_system))
        st.dataframe(df_hist[["time", "Download", "Upload"]].iloc[::-1],
                     use_container_width=True, hide_index=True, height=300)
    else:
        st.info("Collecting samples… history appears after two ticks.")

# ─── Tab 3: Clock ────────────────────────────────────────────────────

with tab_clock:
    styles = ["Normal", "Small", "Gone"]
    clock_defaults = st.session_state.clock_settings
    k1, k2, k3 = st.columns(3)
    dow = k1.selectbox("Day of week", styles, index=clock_defaults[KEY_CLOCK_DOW])
    am_pm = k2.selectbox("AM/PM", styles, index=clock_defaults[KEY_CLOCK_AM_PM])
    is_24 = k3.toggle("24-hour", value=bool(clock_defaults[KEY_CLOCK_24_HOUR]))

    raw_clock = {
        KEY_CLOCK_DOW: styles.index(dow),
        KEY_CLOCK_AM_PM: styles.index(am_pm),
        KEY_CLOCK_24_HOUR: int(is_24),
        KEY_CLOCK_COLOR: clock_defaults[KEY_CLOCK_COLOR],
    }
    if raw_clock != st.session_state.clock_settings:
        st.session_state.clock_settings = raw_clock
        status_clock.on_config_changed(raw_clock)
        st.rerun()

    zones = ["UTC", "Europe/London", "Europe/Berlin", "America/New_York", "Asia/Tokyo"]
    zone = st.selectbox("Time zone", zones,
                        index=zones.index(status_clock.formatter.snapshot.time_zone_id)
                        if status_clock.formatter.snapshot.time_zone_id in zones else 0)
    if zone != status_clock.formatter.snapshot.time_zone_id:
        status_clock.on_timezone_changed(zone)
        st.rerun()

    st.divider()
    st.subheader("Demo mode")
    st.caption(f"State: {status_clock.formatter.state.value}")
    d1, d2, d3 = st.columns([1, 1, 2])
    if d1.button("Enter demo", disabled=status_clock.formatter.in_demo):
        status_clock.on_demo_command("enter")
        st.rerun()
    if d2.button("Exit demo", disabled=not status_clock.formatter.in_demo):
        status_clock.on_demo_command("exit")
        st.rerun()
    with d3:
        hhmm = st.text_input("Set clock (HHMM)", value="1430", max_chars=4)
        if st.button("Set", disabled=not status_clock.formatter.in_demo):
            if status_clock.on_demo_command("clock", {"hhmm": hhmm}):
                st.toast(f"Clock set to {hhmm[:2]}:{hhmm[2:]}")
                st.rerun()
            else:
                st.error(f"'{hhmm}' is not a valid HHMM time")
