from __future__ import annotations
"""Streamlit dashboard for lab orders.

Orders table with patient/status filters, order details, a tracking timeline,
a new-order form and a chat assistant in the sidebar. Assistant replies carry
action metadata; the `ActionDispatcher` auto-navigates once per message when
the referenced order or patient resolves, otherwise the message shows a button.

Run:
  streamlit run labdesk/ui/dashboard.py

Environment:
  - OPENAI_API_KEY (optional) enables OpenAI phrasing of assistant replies.
  - See `labdesk.core.config` for the remaining settings.
"""

import pathlib
import sys
import time
import uuid

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

# Ensure project root is on sys.path when running via `streamlit run labdesk/ui/dashboard.py`
ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from labdesk.adapters.datasource.json_data_source import JSONPatientRepository
from labdesk.adapters.executor.action_dispatcher import ActionDispatcher
from labdesk.adapters.intents.yaml_registry import YAMLIntentsRegistry
from labdesk.adapters.llm.openai_provider import OpenAIProvider
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.memory.in_memory import InMemoryConversationMemory
from labdesk.adapters.policy.resolution_policy import ResolutionPolicy
from labdesk.adapters.telemetry.logging_sink import ListSink
from labdesk.agent.router import ChatRouter
from labdesk.core.config import Settings
from labdesk.core.errors import OrderValidationError, ProviderUnavailableError
from labdesk.core.types import Interaction
from labdesk.tools.create_order import (
    BILLING_PARTIES,
    PHLEBOTOMY_OPTIONS,
    PHLEBOTOMY_TYPES,
    OrderRequest,
    create_order,
)
from labdesk.tools.order_tracking import build_tracking_steps, current_step_index

STATUSES = ["All", "Pending", "Kit Shipped", "Kit Delivered", "Sample Received", "In Progress", "Completed", "Cancelled"]
OPTION_LABELS = {
    "mobile": "Mobile phlebotomy",
    "in_office": "In-office draw",
    "draw_center": "Draw center",
    "single": "Single draw",
    "hourly": "Hourly draws",
    "clinician": "Bill clinician",
    "patient": "Bill patient",
}


@st.cache_resource(show_spinner=False)
def get_app():
    """Construct and cache the router, its memory and the telemetry sink."""
    settings = Settings.from_env()
    repository = JSONPatientRepository(settings.fixtures_path)
    intents = YAMLIntentsRegistry(settings.intents_path)
    memory = InMemoryConversationMemory(max_messages=settings.max_messages)
    telemetry = ListSink()

    writer = None
    if settings.llm_configured:
        try:
            llm = OpenAIProvider(
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout,
            )
            writer = LLMReplyWriter(llm, intents)
        except ProviderUnavailableError:
            writer = None

    router = ChatRouter(
        repository=repository,
        intents=intents,
        telemetry=telemetry,
        memory=memory,
        writer=writer,
    )
    return router, memory, intents, telemetry


def ensure_state() -> str:
    """Create or return a stable session id and default view state."""
    if "session_id" not in st.session_state:
        st.session_state.session_id = f"ui-{uuid.uuid4().hex[:8]}"
    st.session_state.setdefault("view", "orders")
    st.session_state.setdefault("order_id", None)
    st.session_state.setdefault("patient_filter", "")
    st.session_state.setdefault("status_filter", "All")
    st.session_state.setdefault("prefill_patient_id", None)
    st.session_state.setdefault("tracking_error", None)
    return st.session_state.session_id


# --- Navigation callbacks ---

def show_order(order) -> None:
    if order:
        st.session_state.view = "details"
        st.session_state.order_id = order["id"]


def show_tracking(order_id: str, patient_name=None) -> None:
    st.session_state.view = "tracking"
    st.session_state.order_id = order_id
    st.session_state.tracking_error = None


def filter_patient(patient_name) -> None:
    st.session_state.view = "orders"
    st.session_state.patient_filter = patient_name or ""


def new_order(patient_id=None) -> None:
    st.session_state.view = "new_order"
    st.session_state.prefill_patient_id = patient_id


def build_dispatcher(repo, sesh) -> ActionDispatcher:
    dispatcher = ActionDispatcher(repo, ResolutionPolicy(repo), session=sesh)
    dispatcher.register("view_order", show_order)
    dispatcher.register("track_order", show_tracking)
    dispatcher.register("filter_by_patient", filter_patient)
    dispatcher.register("create_order", new_order)
    dispatcher.register("view_patient", lambda patient_id: filter_patient(
        (repo.find_by_id(patient_id) or {}).get("name")
    ))
    return dispatcher


def auto_dispatch(dispatcher: ActionDispatcher, history) -> dict:
    """Fire pending auto-triggered actions; return outcomes by message id."""
    outcomes = {}
    for msg in history:
        if msg.get("role") != "assistant":
            continue
        outcome = dispatcher.dispatch(msg["id"], msg.get("metadata"))
        outcomes[msg["id"]] = outcome
        if outcome["status"] == "not_found" and outcome["action"] == "track_order":
            st.session_state.view = "tracking"
            st.session_state.order_id = msg["metadata"].get("orderId")
            st.session_state.tracking_error = msg["metadata"].get("orderId")
            dispatcher.session.mark_dispatched(msg["id"])
    return outcomes


# --- Views ---

def render_orders(repo) -> None:
    st.subheader("Test Orders")
    c1, c2 = st.columns([2, 1])
    name = c1.text_input("Patient", key="patient_filter", placeholder="Filter by patient name")
    status = c2.selectbox("Status", STATUSES, key="status_filter")

    patients = repo.find_by_name_fragment(name) if name.strip() else repo.patients()
    rows = []
    for p in patients:
        for o in p.get("orders", []):
            if status != "All" and o.get("status") != status:
                continue
            rows.append({
                "Order": o["id"],
                "Patient": p.get("name"),
                "Test": o.get("testName"),
                "Status": o.get("status"),
                "Ordered": o.get("orderedDate"),
                "Updated": o.get("lastUpdated"),
            })
    rows.sort(key=lambda r: r["Ordered"] or "", reverse=True)
    if not rows:
        st.info("No orders match the current filters.")
        return
    st.dataframe(rows, use_container_width=True, hide_index=True)

    selected = st.selectbox("Open order", [r["Order"] for r in rows])
    b1, b2 = st.columns(2)
    if b1.button("View Details", use_container_width=True):
        show_order(repo.get_order(selected))
        st.rerun()
    if b2.button("Track Order", use_container_width=True):
        show_tracking(selected)
        st.rerun()


def render_details(repo) -> None:
    order = repo.get_order(st.session_state.order_id or "")
    if st.button("← Back to orders"):
        st.session_state.view = "orders"
        st.rerun()
    if not order:
        st.error(f"Order {st.session_state.order_id} not found.")
        return
    patient = repo.find_by_id(order.get("patientId", "")) or {}
    st.subheader(f"Order {order['id']}: {order.get('testName')}")
    c1, c2, c3 = st.columns(3)
    c1.metric("Status", order.get("status", ""))
    c2.metric("Ordered", order.get("orderedDate", ""))
    c3.metric("Updated", order.get("lastUpdated", ""))
    st.write(f"**Patient:** {patient.get('name', 'Unknown')} ({order.get('patientId')})")
    st.write(f"**Ordered by:** {order.get('orderedBy', '')}")
    st.write(f"**Test type:** {order.get('testType', '')}")
    if order.get("notes"):
        st.write(f"**Notes:** {order['notes']}")

    results = order.get("results")
    if results:
        st.markdown("#### Results")
        if results.get("flagged"):
            st.warning("Flagged for clinician review")
        st.write(results.get("resultSummary", ""))
        details = results.get("resultDetails") or {}
        if details:
            st.table([{"Marker": k, "Value": v} for k, v in details.items()])
        if results.get("interpretation"):
            st.caption(results["interpretation"])
        if results.get("recommendedFollowUp"):
            st.info(results["recommendedFollowUp"])
    if st.button("Track this order"):
        show_tracking(order["id"])
        st.rerun()


def render_tracking(repo) -> None:
    if st.button("← Back to orders"):
        st.session_state.view = "orders"
        st.session_state.tracking_error = None
        st.rerun()
    missing = st.session_state.tracking_error
    order = None if missing else repo.get_order(st.session_state.order_id or "")
    if order is None:
        st.error(f"Order {missing or st.session_state.order_id} not found. Check the order ID and try again.")
        return
    patient = repo.find_by_id(order.get("patientId", "")) or {}
    st.subheader(f"Tracking {order['id']}: {order.get('testName')}")
    st.caption(f"{patient.get('name', '')} · status {order.get('status')}")
    steps = build_tracking_steps(order)
    current = current_step_index(steps)
    st.progress((current + 1) / len(steps))
    for i, step in enumerate(steps):
        mark = "✅" if step["completed"] else "⬜"
        when = step["date"] or "pending"
        label = f"**{step['label']}**" if i == current else step["label"]
        st.write(f"{mark} {label} · {when}")
        st.caption(step["description"])


def render_new_order(repo, sesh) -> None:
    st.subheader("New Test Order")
    patients = repo.patients()
    ids = [p["id"] for p in patients]
    names = {p["id"]: p["name"] for p in patients}
    prefill = st.session_state.prefill_patient_id
    index = ids.index(prefill) if prefill in ids else 0
    catalog = {t["id"]: t for t in repo.test_catalog()}

    with st.form("new_order"):
        patient_id = st.selectbox("Patient", ids, index=index, format_func=lambda i: f"{names[i]} ({i})")
        tests = st.multiselect(
            "Tests",
            list(catalog),
            format_func=lambda t: f"{catalog[t]['name']} ({catalog[t]['code']}) · ${catalog[t]['price']:.2f}",
        )
        option = st.radio("Phlebotomy", PHLEBOTOMY_OPTIONS, format_func=OPTION_LABELS.get, horizontal=True)
        draw = st.radio("Draw type", PHLEBOTOMY_TYPES, format_func=OPTION_LABELS.get, horizontal=True)
        billed = st.radio("Billing", BILLING_PARTIES, format_func=OPTION_LABELS.get, horizontal=True)
        notes = st.text_area("Notes", "")
        st.write(f"Total: ${sum(catalog[t]['price'] for t in tests):.2f}")
        submitted = st.form_submit_button("Place Order")

    if submitted:
        try:
            created = create_order(
                OrderRequest(
                    patient_id=patient_id,
                    test_ids=list(tests),
                    phlebotomy_option=option,
                    phlebotomy_type=draw,
                    billed_to=billed,
                    notes=notes,
                ),
                repo,
                sesh,
            )
        except OrderValidationError as exc:
            st.error(exc.message)
            return
        st.success(f"Order {created.id} placed for {names[patient_id]} (total ${created.total:.2f}).")
        st.session_state.prefill_patient_id = None


def render_chat(router, sid, intents, dispatcher, outcomes) -> None:
    st.sidebar.header("Lab Assistant")
    st.sidebar.caption(f"Session: `{sid}`")
    sesh = router.memory.for_session(sid)
    for msg in sesh.history():
        role = msg.get("role", "user")
        if role not in ("user", "assistant"):
            continue
        with st.sidebar.chat_message(role):
            st.write(msg.get("content", ""))
            metadata = msg.get("metadata")
            outcome = outcomes.get(msg.get("id"), {})
            if metadata and outcome.get("status") == "manual":
                st.button(
                    intents.button_label(metadata),
                    key=f"btn-{msg['id']}",
                    on_click=dispatcher.trigger,
                    args=(metadata,),
                )
    if st.sidebar.button("Reset Conversation", use_container_width=True):
        sesh.clear()
        st.rerun()


def main() -> None:
    st.set_page_config(page_title="Lab Orders", page_icon="🧪", layout="wide")
    st.title("Lab Orders Dashboard")

    sid = ensure_state()
    router, memory, intents, telemetry = get_app()
    sesh = memory.for_session(sid)
    repo = router.session_repository(sid)
    dispatcher = build_dispatcher(repo, sesh)

    prompt = st.chat_input("Ask about orders, patients or results…")
    if prompt:
        interaction: Interaction = {
            "id": f"msg-{int(time.time() * 1000)}",
            "text": prompt,
            "context": {"session_id": sid, "channel": "dashboard"},
        }
        router.handle(interaction)

    outcomes = auto_dispatch(dispatcher, sesh.history())

    view = st.session_state.view
    if view == "details":
        render_details(repo)
    elif view == "tracking":
        render_tracking(repo)
    elif view == "new_order":
        render_new_order(repo, sesh)
    else:
        render_orders(repo)

    render_chat(router, sid, intents, dispatcher, outcomes)
    with st.sidebar.expander("Pipeline events", expanded=False):
        st.json([e for e in telemetry.events if e.get("session_id") == sid][-12:])


if __name__ == "__main__":
    main()
