"""
NetWorth Pro - Streamlit Calculator
===================================
Multi-step net worth calculator with local persistence.

Flow:
1. Assets → what you own
2. Liabilities → what you owe
3. Monthly → income and expenses
4. Results → net worth, ratios, charts, PDF/JSON export
"""

import sys
import os

# Path setup for Streamlit Cloud
_current_file = os.path.abspath(__file__)
_backend_dir = os.path.dirname(_current_file)
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

import logging
from typing import Dict, List, Tuple

import altair as alt
import pandas as pd
import streamlit as st

from calculator import asset_breakdown, liability_breakdown, non_zero_categories, CategoryBreakdown
from config import Settings, load_settings
from currency import CURRENCY_OPTIONS, format_currency, get_currency_symbol
from export import ExportFile, export_to_json, export_to_pdf, report_fingerprint
from flow import Step, StepFlow, StepStatus
from models import ASSET_CATEGORIES, EXPENSE_FIELDS, INCOME_FIELDS, LIABILITY_CATEGORIES, NetWorthSnapshot
from session_store import (
    JsonFileStorage,
    SessionStore,
    is_valid_session_id,
    new_session_id,
    session_storage_key,
)

logger = logging.getLogger(__name__)

WIDGET_PREFIXES = ("asset_", "liability_", "monthly_")
SESSION_PARAM = "sid"


# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="NetWorth Pro - Net Worth Calculator",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="collapsed"
)

st.markdown("""
<style>
    .main .block-container {
        padding-top: 2rem;
        max-width: 1200px;
    }

    .net-worth-banner {
        text-align: center;
        padding: 2rem;
        border-radius: 16px;
        color: white;
        margin-bottom: 1.5rem;
    }

    .net-worth-positive {
        background: linear-gradient(135deg, #1565C0 0%, #0D47A1 100%);
    }

    .net-worth-negative {
        background: linear-gradient(135deg, #dc3545 0%, #c82333 100%);
    }

    .net-worth-amount {
        font-size: 3rem;
        font-weight: bold;
        margin: 0.5rem 0;
    }

    .step-completed { color: #14A66B; font-weight: 600; }
    .step-active { color: #1565C0; font-weight: 700; }
    .step-pending { color: #9e9e9e; }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# SESSION STATE
# =============================================================================

def get_app_settings() -> Settings:
    """Environment settings, with Streamlit secrets taking precedence."""
    environ = dict(os.environ)
    try:
        for key in ("NETWORTH_STORAGE_PATH", "NETWORTH_AUTOSAVE_DELAY", "NETWORTH_LOG_LEVEL"):
            if key in st.secrets:
                environ[key] = str(st.secrets[key])
    except Exception:
        # No secrets.toml configured
        pass
    return load_settings(environ)


def get_browser_session_id() -> str:
    """
    Id that ties a browser to its saved data, kept in the ``sid`` query
    parameter. Reopening the same link restores the same session.
    """
    session_id = st.query_params.get(SESSION_PARAM)
    if not is_valid_session_id(session_id):
        session_id = new_session_id()
        st.query_params[SESSION_PARAM] = session_id
    return session_id


def init_session_state():
    """Initialize session state variables."""
    if 'settings' not in st.session_state:
        st.session_state.settings = get_app_settings()
        logging.basicConfig(level=getattr(logging, st.session_state.settings.log_level, logging.INFO))

    if 'store' not in st.session_state:
        settings = st.session_state.settings
        store = SessionStore(
            JsonFileStorage(settings.storage_path),
            autosave_delay=settings.autosave_delay,
            storage_key=session_storage_key(get_browser_session_id()),
        )
        if store.load():
            logger.info(f"Restored saved session '{store.storage_key}'")
        st.session_state.store = store

    if 'flow' not in st.session_state:
        st.session_state.flow = StepFlow()

init_session_state()

store: SessionStore = st.session_state.store
flow: StepFlow = st.session_state.flow

# Due saves also run on every rerun; autosave_timer covers idle sessions
store.run_pending()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def fmt(amount: float) -> str:
    return format_currency(amount, store.currency)


def clear_form_widgets():
    """Drop cached widget values so inputs re-read the store."""
    for key in list(st.session_state.keys()):
        if key.startswith(WIDGET_PREFIXES):
            del st.session_state[key]


def go_to(step_change: str):
    # Persist before leaving the step
    store.flush()
    getattr(flow, step_change)()
    st.rerun()


def amount_inputs(prefix: str, items: Tuple[Tuple[str, str], ...], record, columns: int = 3) -> Dict[str, float]:
    """Render number inputs for (field, label) pairs; return the changed values."""
    symbol = get_currency_symbol(store.currency)
    changed = {}
    cols = st.columns(columns)
    for i, (name, label) in enumerate(items):
        current = float(getattr(record, name))
        with cols[i % columns]:
            value = st.number_input(
                f"{label} ({symbol})",
                min_value=0.0,
                value=current,
                step=100.0,
                format="%.2f",
                key=f"{prefix}{name}",
            )
        if value != current:
            changed[name] = value
    return changed


@st.cache_data(show_spinner=False, max_entries=32)
def build_exports(fingerprint: str, _snapshot: NetWorthSnapshot) -> Tuple[ExportFile, ExportFile]:
    """PDF and JSON reports, rebuilt only when ``fingerprint`` changes."""
    return export_to_pdf(_snapshot), export_to_json(_snapshot)


def category_frame(categories: List[CategoryBreakdown]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "category": c.name,
            "amount": c.value,
            "color": c.color,
            "amount_label": fmt(c.value),
            "share_label": f"{c.percentage}%",
        }
        for c in categories
    ])


def render_progress():
    cols = st.columns(flow.total_steps + 1)
    for col, (number, label, status) in zip(cols, flow.progress()):
        marker = "✓" if status == StepStatus.COMPLETED else str(number)
        col.markdown(
            f'<span class="step-{status.value}">{marker} {label}</span>',
            unsafe_allow_html=True,
        )
    cols[-1].caption(f"Step {flow.step_number} of {flow.total_steps}")


def render_navigation(next_label: str = "Next →"):
    col_back, _, col_next = st.columns([1, 3, 1])
    with col_back:
        if not flow.is_first and st.button("← Back", use_container_width=True, key=f"back_{flow.current.value}"):
            go_to("back")
    with col_next:
        if st.button(next_label, type="primary", use_container_width=True, key=f"next_{flow.current.value}"):
            go_to("next")


# =============================================================================
# STEPS
# =============================================================================

def render_assets_step():
    st.header("🏦 Your Assets")
    st.caption("Enter the current value of everything you own.")

    changed = {}
    for group in ASSET_CATEGORIES:
        with st.expander(group.name, expanded=True):
            changed.update(amount_inputs("asset_", group.items, store.assets))
    if changed:
        store.update_assets(changed)

    st.metric("Total Assets", fmt(store.calculations.total_assets))
    render_navigation("Continue to Liabilities →")


def render_liabilities_step():
    st.header("💳 Your Liabilities")
    st.caption("Enter the outstanding balance of every debt.")

    changed = {}
    for group in LIABILITY_CATEGORIES:
        with st.expander(group.name, expanded=True):
            changed.update(amount_inputs("liability_", group.items, store.liabilities))
    if changed:
        store.update_liabilities(changed)

    col1, col2 = st.columns(2)
    col1.metric("Total Liabilities", fmt(store.calculations.total_liabilities))
    col2.metric("Net Worth So Far", fmt(store.calculations.net_worth))
    render_navigation("Continue →")


def render_monthly_step():
    st.header("📅 Monthly Income & Expenses")
    st.caption("Track your monthly cash flow to understand your financial health.")

    calc = store.calculations
    col1, col2, col3 = st.columns(3)
    col1.metric("Monthly Income", fmt(calc.monthly_income))
    col2.metric("Monthly Expenses", fmt(calc.monthly_expenses))
    col3.metric("Cash Flow", fmt(calc.monthly_cash_flow))

    changed = {}
    with st.expander("Income", expanded=True):
        changed.update(amount_inputs("monthly_", INCOME_FIELDS, store.monthly_financials))
    with st.expander("Expenses", expanded=True):
        changed.update(amount_inputs("monthly_", EXPENSE_FIELDS, store.monthly_financials))
    if changed:
        store.update_monthly_financials(changed)
        st.rerun()

    render_navigation("See Results →")


def render_asset_chart(categories: List[CategoryBreakdown]):
    if not categories:
        st.info("No assets entered yet.")
        return
    data = category_frame(categories)
    chart = alt.Chart(data).mark_arc(innerRadius=60).encode(
        theta=alt.Theta("amount:Q"),
        color=alt.Color(
            "category:N",
            scale=alt.Scale(domain=list(data["category"]), range=list(data["color"])),
            legend=alt.Legend(title=None, orient="bottom"),
        ),
        tooltip=[
            alt.Tooltip("category:N"),
            alt.Tooltip("amount_label:N", title="Amount"),
            alt.Tooltip("share_label:N", title="Share"),
        ],
    ).properties(height=320)
    st.altair_chart(chart, use_container_width=True)


def render_comparison_chart():
    calc = store.calculations
    data = pd.DataFrame([
        {"label": "Assets", "amount": calc.total_assets, "color": "#2E7D32"},
        {"label": "Liabilities", "amount": calc.total_liabilities, "color": "#C62828"},
        {"label": "Net Worth", "amount": calc.net_worth, "color": "#1565C0"},
    ])
    chart = alt.Chart(data).mark_bar().encode(
        x=alt.X("label:N", sort=None, title=None),
        y=alt.Y("amount:Q", title=get_currency_symbol(store.currency)),
        color=alt.Color("color:N", scale=None),
        tooltip=[alt.Tooltip("label:N"), alt.Tooltip("amount:Q", format=",.2f")],
    ).properties(height=320)
    st.altair_chart(chart, use_container_width=True)


def render_breakdown(title: str, categories: List[CategoryBreakdown], empty_text: str):
    st.subheader(title)
    if not categories:
        st.caption(empty_text)
        return
    for category in categories:
        col1, col2 = st.columns([3, 1])
        col1.markdown(f"**{category.name}**")
        col2.markdown(f"{fmt(category.value)}  \n{category.percentage}%")
        for item in category.non_zero_items:
            st.caption(f"{item.label}: {fmt(item.value)}")


def render_results():
    calc = store.calculations
    banner_class = "net-worth-positive" if calc.net_worth >= 0 else "net-worth-negative"
    st.markdown(f"""
    <div class="net-worth-banner {banner_class}">
        <h3>Your Total Net Worth</h3>
        <div class="net-worth-amount">{fmt(calc.net_worth)}</div>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Assets", fmt(calc.total_assets))
    col2.metric("Total Liabilities", fmt(calc.total_liabilities))
    col3.metric("Debt-to-Asset Ratio", f"{calc.debt_to_asset_ratio}%")

    assets = non_zero_categories(asset_breakdown(store.assets))
    liabilities = non_zero_categories(liability_breakdown(store.liabilities))

    chart_col1, chart_col2 = st.columns(2)
    with chart_col1:
        st.subheader("Asset Allocation")
        render_asset_chart(assets)
    with chart_col2:
        st.subheader("Assets vs Liabilities")
        render_comparison_chart()

    list_col1, list_col2 = st.columns(2)
    with list_col1:
        render_breakdown("Assets Breakdown", assets, "No assets reported.")
    with list_col2:
        render_breakdown("Liabilities Breakdown", liabilities, "No liabilities reported. 🎉")

    if calc.monthly_income or calc.monthly_expenses:
        st.subheader("Monthly Cash Flow")
        m1, m2, m3 = st.columns(3)
        m1.metric("Income", fmt(calc.monthly_income))
        m2.metric("Expenses", fmt(calc.monthly_expenses))
        m3.metric(
            "Cash Flow",
            fmt(calc.monthly_cash_flow),
            "Surplus" if calc.monthly_cash_flow >= 0 else "Deficit",
            delta_color="normal" if calc.monthly_cash_flow >= 0 else "inverse",
        )

    st.markdown("---")
    snapshot = store.snapshot()
    pdf_file, json_file = build_exports(report_fingerprint(snapshot), snapshot)

    col_back, col_pdf, col_json, col_reset = st.columns(4)
    with col_back:
        if st.button("← Back", use_container_width=True, key="back_results"):
            go_to("back")
    with col_pdf:
        st.download_button(
            "📄 Export PDF", pdf_file.data, file_name=pdf_file.filename,
            mime=pdf_file.mime_type, use_container_width=True,
        )
    with col_json:
        st.download_button(
            "⬇️ Export JSON", json_file.data, file_name=json_file.filename,
            mime=json_file.mime_type, use_container_width=True,
        )
    with col_reset:
        confirm = st.checkbox("Clear all entered data", key="confirm_reset")
        if st.button("🔄 Start Over", use_container_width=True, disabled=not confirm):
            store.reset()
            flow.reset()
            clear_form_widgets()
            del st.session_state["confirm_reset"]
            st.rerun()


# =============================================================================
# MAIN APP
# =============================================================================

header_col1, header_col2, header_col3 = st.columns([3, 1, 1])
with header_col1:
    st.title("💰 NetWorth Pro")
    st.caption("Professional Net Worth Calculator")
with header_col2:
    codes = [code for code, _ in CURRENCY_OPTIONS]
    selected = st.selectbox(
        "Currency",
        codes,
        index=codes.index(store.currency.value),
        format_func=dict(CURRENCY_OPTIONS).get,
    )
    if selected != store.currency.value:
        store.update_currency(selected)
        st.rerun()
with header_col3:
    st.write("")
    if st.button("💾 Save Progress", use_container_width=True):
        if store.save():
            st.success("Progress saved.")
        else:
            st.error("Unable to save your data. Please try again.")

render_progress()
st.markdown("---")

if flow.current == Step.ASSETS:
    render_assets_step()
elif flow.current == Step.LIABILITIES:
    render_liabilities_step()
elif flow.current == Step.MONTHLY_FINANCIALS:
    render_monthly_step()
else:
    render_results()

st.markdown("---")
st.caption(
    "© NetWorth Pro. Your entries are saved on this server under your page link. "
    "Bookmark it to come back to them."
)


@st.fragment(run_every=max(st.session_state.settings.autosave_delay, 0.5))
def autosave_timer():
    """Reruns on its own, so an idle session still gets its pending save."""
    store.run_pending()


autosave_timer()
