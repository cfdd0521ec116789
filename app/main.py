"""
Streamlit Frontend for Resort Finance Hub

This is the console the front desk staff and the resort owner use daily.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation at every step
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The UI enforces the human-in-the-loop principle:
- Staff see what the AI read from a slip or ID card
- Staff confirm or edit
- Nothing scanned or imported is saved without an explicit action

Expired room locks are swept on a timer (a fragment that reruns every
SWEEP_INTERVAL_SECONDS), so an open page drops a lock soon after it runs
out even when nobody clicks.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pandas as pd
import streamlit as st

from resort_finance.audit import create_correlation_id
from resort_finance.config import get_settings, validate_all_settings
from resort_finance.models.booking import (
    BookingStatus,
    CheckInRequest,
    CustomerType,
    GuestData,
    QuickBookRequest,
)
from resort_finance.models.transaction import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    NewTransaction,
    ReceiptIntent,
    TransactionType,
)
from resort_finance.orchestrator import (
    ReceiptScan,
    ResortOperations,
    create_app_components,
    user_message,
)
from resort_finance.pricing import all_room_numbers, get_room_type, total_amount
from resort_finance.services.documents import DocumentKind, build_document_context
from resort_finance.views import (
    booking_payment_statuses,
    category_breakdown,
    monthly_breakdown,
)


# Page configuration
st.set_page_config(
    page_title="Resort Finance Hub",
    page_icon="🏝️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> ResortOperations:
    """Get or create the application (cached), with saved data loaded."""
    ops = create_app_components(use_storage=True)
    try:
        run_async(ops.load())
    except Exception as e:
        st.error(f"Failed to load saved data: {user_message(e)}")
        ops = create_app_components(use_storage=False)
    return ops


@st.fragment(run_every=timedelta(seconds=get_settings().app.sweep_interval_seconds))
def sweep_expired_locks():
    """Release expired room locks, then redraw the page if any were removed."""
    expired = run_async(get_components().sweep_now())
    if expired:
        st.session_state["released_locks"] = len(expired)
        st.rerun()


def baht(amount) -> str:
    return f"฿{Decimal(amount):,.2f}"


def main():
    """Main application entry point."""
    ops = get_components()

    if not ops.has_storage:
        st.warning(
            "⚠️ Saved data could not be loaded. Changes in this session are NOT being saved. "
            "Fix the data file or storage settings and restart the app."
        )

    sweep_expired_locks()
    released = st.session_state.pop("released_locks", 0)
    if released:
        st.toast(f"⌛ {released} room lock(s) expired and were released")

    st.sidebar.title(f"🏝️ {ops.profile.resort_name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🛎️ Front Desk", "💸 Transactions", "🏨 PMS / Bookings", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Daily routine:**
        1. Check guests in at the Front Desk
        2. Scan slips and receipts
        3. Reconcile pending items on the Dashboard
        """
    )

    if page == "📊 Dashboard":
        render_dashboard_page(ops)
    elif page == "🛎️ Front Desk":
        render_front_desk_page(ops)
    elif page == "💸 Transactions":
        render_transactions_page(ops)
    elif page == "🏨 PMS / Bookings":
        render_pms_page(ops)
    elif page == "⚙️ Settings":
        render_settings_page(ops)


def render_dashboard_page(ops: ResortOperations):
    """Render the owner's dashboard."""
    st.title("📊 Dashboard")
    dashboard = ops.dashboard()

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", baht(dashboard.financials.total_income))
    col2.metric("Total Expense", baht(dashboard.financials.total_expense))
    col3.metric("Net Profit", baht(dashboard.financials.net_profit))

    st.markdown("---")
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("🛬 Next Arrival")
        arrival = dashboard.occupancy.next_arrival
        if arrival:
            st.markdown(f"**{arrival.guest_name}** · Room {arrival.room_number} · {arrival.check_in:%d %b %Y}")
        else:
            st.caption("No upcoming arrivals")

    with col2:
        st.subheader("🛫 Next Departure")
        departure = dashboard.occupancy.next_departure
        if departure:
            st.markdown(f"**{departure.guest_name}** · Room {departure.room_number} · {departure.check_out:%d %b %Y}")
        else:
            st.caption("No guests due to leave")

    st.markdown("---")
    pending = dashboard.pending
    st.subheader(f"🧾 Pending Reconciliation ({pending.total_count})")

    if not pending.items:
        st.markdown("""
        <div class="success-box">
            <h4>✅ All caught up</h4>
            <p>Every transaction has been reconciled.</p>
        </div>
        """, unsafe_allow_html=True)

    for tx in pending.items:
        col1, col2 = st.columns([4, 1])
        with col1:
            sign = "+" if tx.type == TransactionType.INCOME else "-"
            st.markdown(f"{tx.date:%d %b} · {tx.category} · {tx.description or '-'} · **{sign}{baht(tx.amount)}**")
        with col2:
            if st.button("✅ Reconcile", key=f"dash_rec_{tx.id}"):
                try:
                    run_async(ops.toggle_reconciled(tx.id))
                    st.rerun()
                except Exception as e:
                    st.error(user_message(e))

    if pending.total_count > len(pending.items):
        st.caption(f"...and {pending.total_count - len(pending.items)} more on the Transactions page")


def render_front_desk_page(ops: ResortOperations):
    """Render check-in and quick room lock."""
    st.title("🛎️ Front Desk")

    if "guest" not in st.session_state:
        st.session_state.guest = None
    if "last_check_in" not in st.session_state:
        st.session_state.last_check_in = None

    tab_check_in, tab_lock = st.tabs(["Check-in", "Quick Lock"])

    with tab_check_in:
        render_check_in(ops)

    with tab_lock:
        render_quick_lock(ops)


def render_check_in(ops: ResortOperations):
    # Step 1: ID card (optional)
    if ops.ocr_available:
        id_photo = st.file_uploader(
            "Guest ID card photo (optional)",
            type=["jpg", "jpeg", "png", "webp"],
            key="id_card_upload",
            help="Scan the Thai ID card to fill in the form",
        )
        if id_photo and st.button("🪪 Read ID Card"):
            with st.spinner("Reading ID card..."):
                try:
                    st.session_state.guest = run_async(ops.scan_guest_id(id_photo.read()))
                    st.rerun()
                except Exception as e:
                    st.error(user_message(e))
    else:
        st.info("🪪 ID card scanning is off (Gemini not configured). Type the guest details.")

    scanned: GuestData = st.session_state.guest

    # Step 2: Form
    st.markdown("### Guest Details")
    col1, col2 = st.columns(2)
    with col1:
        first_name = st.text_input("First name *", value=scanned.first_name_th if scanned else "")
        id_number = st.text_input("ID / passport number", value=scanned.id_number if scanned else "")
        phone = st.text_input("Phone", value=(scanned.phone or "") if scanned else "")
    with col2:
        last_name = st.text_input("Last name", value=scanned.last_name_th if scanned else "")
        address = st.text_area("Address", value=scanned.address if scanned else "", height=100)

    st.markdown("### Stay")
    col1, col2, col3 = st.columns(3)
    with col1:
        room = st.selectbox("Room *", options=all_room_numbers())
        customer_type = st.selectbox(
            "Customer type",
            options=list(CustomerType),
            format_func=lambda c: c.value,
        )
    with col2:
        check_in = st.date_input("Check-in *", value=ops.today(), key="ci_in")
        check_out = st.date_input("Check-out *", value=ops.today() + timedelta(days=1), key="ci_out")
    with col3:
        suggested = total_amount(room, check_in, check_out) if check_out > check_in else Decimal("0")
        amount = st.number_input(
            "Amount (฿) *",
            value=float(suggested),
            min_value=0.0,
            step=100.0,
            format="%.2f",
            help="Catalog price for the stay; edit for discounts",
        )
        description = st.text_input("Description", value="Room revenue")

    if st.button("✅ Confirm Check-in", type="primary"):
        guest = None
        if first_name.strip():
            base = scanned.model_dump() if scanned else {}
            guest = GuestData(**{
                **base,
                "first_name_th": first_name,
                "last_name_th": last_name,
                "id_number": id_number,
                "phone": phone or None,
                "address": address,
            })

        request = CheckInRequest(
            guest=guest,
            room_number=room,
            amount=Decimal(str(amount)),
            check_in=check_in,
            check_out=check_out,
            description=description,
            customer_type=customer_type,
        )
        try:
            booking, tx = run_async(ops.check_in(request, correlation_id=create_correlation_id()))
            st.session_state.last_check_in = (booking, tx)
            st.session_state.guest = None
            st.rerun()
        except Exception as e:
            st.error(user_message(e))

    # Step 3: Result and documents
    if st.session_state.last_check_in:
        booking, tx = st.session_state.last_check_in
        st.markdown(f"""
        <div class="success-box">
            <h3>✅ Checked in!</h3>
            <p><strong>Guest:</strong> {booking.guest_name}</p>
            <p><strong>Room:</strong> {booking.room_number} ({booking.nights} nights)</p>
            <p><strong>Amount:</strong> {baht(tx.amount)}</p>
        </div>
        """, unsafe_allow_html=True)

        kind = st.selectbox(
            "Print document",
            options=list(DocumentKind),
            format_func=lambda k: k.title,
        )
        render_document_preview(ops, booking, tx, kind)


def render_document_preview(ops: ResortOperations, booking, tx, kind: DocumentKind):
    """Show the document's content; printing is done from the browser."""
    context = build_document_context(
        kind=kind,
        resort=ops.profile,
        guest=booking.guest_details,
        room_number=booking.room_number,
        amount=tx.amount,
        description=tx.description,
        booking=booking,
        transaction=tx,
    )
    with st.expander(f"🖨️ {context.title}", expanded=True):
        st.markdown(f"**{context.resort.resort_name}**  \n{context.resort.resort_address}")
        st.caption(f"Tax ID {context.resort.tax_id} · Tel {context.resort.phone}")
        st.markdown(f"**Guest:** {context.guest.display_name}  \n**ID:** {context.guest.id_number or '-'}")
        st.markdown(f"**Room:** {context.room_number} · {booking.check_in:%d/%m/%Y} - {booking.check_out:%d/%m/%Y}")
        if kind != DocumentKind.RR3:
            st.markdown(f"{context.description}")
            if context.vat_amount is not None:
                st.markdown(f"Before VAT: {baht(context.amount_before_vat)}  \nVAT 7%: {baht(context.vat_amount)}")
            st.markdown(f"### Total {baht(context.amount)}")


def render_quick_lock(ops: ResortOperations):
    st.markdown(
        f"Hold a room for a guest who has not paid yet. "
        f"The lock is released automatically after {int(ops.store.lock_duration.total_seconds() // 60)} minutes."
    )

    col1, col2 = st.columns(2)
    with col1:
        guest_name = st.text_input("Guest name *", key="ql_name")
        phone = st.text_input("Phone", key="ql_phone")
        room = st.selectbox("Room *", options=all_room_numbers(), key="ql_room")
    with col2:
        check_in = st.date_input("Check-in", value=ops.today(), key="ql_in")
        check_out = st.date_input("Check-out", value=ops.today() + timedelta(days=1), key="ql_out")
        room_type = get_room_type(room)
        suggested = total_amount(room, check_in, check_out) if check_out > check_in else Decimal("0")
        amount = st.number_input(
            "Amount (฿) *",
            value=float(suggested),
            min_value=0.0,
            step=100.0,
            key="ql_amount",
            help=f"{room_type.name} · {baht(room_type.price_per_night)} / night" if room_type else None,
        )

    if st.button("🔒 Lock Room", type="primary"):
        request = QuickBookRequest(
            guest_name=guest_name,
            room_number=room,
            amount=Decimal(str(amount)),
            check_in=check_in,
            check_out=check_out,
            phone=phone or None,
        )
        try:
            booking = run_async(ops.quick_book(request))
            st.success(
                f"🔒 Room {booking.room_number} held for {booking.guest_name} "
                f"until {booking.locked_until.astimezone():%H:%M}. "
                f"Deposit due: {baht(booking.deposit_amount)}"
            )
        except Exception as e:
            st.error(user_message(e))


def render_transactions_page(ops: ResortOperations):
    """Render slip scanning, manual entry and the ledger."""
    st.title("💸 Transactions")

    if "scan" not in st.session_state:
        st.session_state.scan = None

    tab_scan, tab_manual, tab_list, tab_reports = st.tabs(
        ["Scan Slip", "Manual Entry", "Ledger", "Reports"]
    )

    with tab_scan:
        render_scan(ops)
    with tab_manual:
        render_manual_entry(ops)
    with tab_list:
        render_ledger(ops)
    with tab_reports:
        render_reports(ops)


def render_scan(ops: ResortOperations):
    if not ops.ocr_available:
        st.info("Slip scanning is off (Gemini not configured). Use Manual Entry.")
        return

    scan: ReceiptScan = st.session_state.scan

    # Step 1: Upload
    if scan is None:
        photo = st.file_uploader(
            "Slip or receipt photo",
            type=["jpg", "jpeg", "png", "webp"],
            help="Take a clear, well-lit photo",
        )
        intent = st.radio(
            "This document is",
            options=list(ReceiptIntent),
            format_func=lambda i: {"income": "Money in", "expense": "Money out", "general": "Not sure"}[i.value],
            horizontal=True,
        )
        if photo and st.button("🔍 Read Slip", type="primary"):
            with st.spinner("Reading your slip... Please wait."):
                try:
                    st.session_state.scan = run_async(ops.scan_receipt(photo.read(), intent))
                    st.rerun()
                except Exception as e:
                    st.error(user_message(e))
        return

    # Step 2: Review and Confirm
    extraction = scan.extraction
    st.markdown("""
    <div class="warning-box">
        <h4>⚠️ Please Review</h4>
        <p>Check what the AI read before saving. You can edit any field.</p>
    </div>
    """, unsafe_allow_html=True)

    with st.expander("📷 View Slip"):
        st.image(scan.image_url, width=400)

    col1, col2 = st.columns(2)
    with col1:
        tx_date = st.date_input("Date", value=extraction.date)
        tx_type = st.selectbox(
            "Type",
            options=list(TransactionType),
            index=list(TransactionType).index(extraction.type),
            format_func=lambda t: t.value.title(),
        )
        amount = st.number_input("Amount (฿)", value=float(extraction.amount), min_value=0.0, format="%.2f")
    with col2:
        categories = [c.value for c in (INCOME_CATEGORIES if tx_type == TransactionType.INCOME else EXPENSE_CATEGORIES)]
        if extraction.category not in categories:
            categories.insert(0, extraction.category)
        category = st.selectbox("Category", options=categories, index=categories.index(extraction.category))
        description = st.text_input("Description", value=extraction.description)

    if extraction.confidence:
        st.markdown(f"""
        **Read Confidence:** {extraction.confidence:.0%}
        {"🟢" if extraction.confidence >= 0.8 else "🟡" if extraction.confidence >= 0.6 else "🔴"}
        """)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Confirm and Save", type="primary"):
            edited = extraction.model_copy(update={
                "date": tx_date,
                "type": tx_type,
                "amount": Decimal(str(amount)),
                "category": category,
                "description": description,
            })
            try:
                tx = run_async(ops.confirm_receipt(ReceiptScan(edited, scan.image_url)))
                st.session_state.scan = None
                st.success(f"✅ Saved {baht(tx.amount)} · {tx.category}")
            except Exception as e:
                st.error(user_message(e))
    with col2:
        if st.button("❌ Discard"):
            st.session_state.scan = None
            st.rerun()


def render_manual_entry(ops: ResortOperations):
    tx_type = st.radio(
        "Type",
        options=list(TransactionType),
        format_func=lambda t: t.value.title(),
        horizontal=True,
        key="manual_type",
    )
    categories = INCOME_CATEGORIES if tx_type == TransactionType.INCOME else EXPENSE_CATEGORIES

    with st.form("manual_entry", clear_on_submit=True):
        tx_date = st.date_input("Date", value=ops.today())
        category = st.selectbox("Category", options=[c.value for c in categories])
        amount = st.number_input("Amount (฿)", min_value=0.0, step=10.0, format="%.2f")
        description = st.text_input("Description")
        room = st.text_input("Room / booking reference (optional)")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        if amount <= 0:
            st.error("Please enter a valid amount")
            return
        try:
            tx = run_async(ops.add_transaction(NewTransaction(
                date=tx_date,
                type=tx_type,
                category=category,
                amount=Decimal(str(amount)),
                description=description,
                pms_reference_id=room or None,
            )))
            st.success(f"✅ Saved {baht(tx.amount)}")
        except Exception as e:
            st.error(user_message(e))


def render_ledger(ops: ResortOperations):
    transactions = ops.ledger.transactions
    if not transactions:
        st.info("📋 Transactions will appear here once you scan a slip or check a guest in.")
        return

    frame = pd.DataFrame([
        {
            "id": tx.id,
            "date": tx.date,
            "type": tx.type.value,
            "category": tx.category,
            "amount": float(tx.amount),
            "description": tx.description,
            "reconciled": tx.is_reconciled,
            "reference": tx.pms_reference_id or "",
        }
        for tx in transactions
    ])
    st.download_button(
        "⬇️ Export CSV",
        data=frame.to_csv(index=False).encode("utf-8-sig"),
        file_name=f"transactions_{date.today():%Y%m%d}.csv",
        mime="text/csv",
    )

    for tx in transactions:
        col1, col2, col3 = st.columns([5, 1, 1])
        with col1:
            sign = "+" if tx.type == TransactionType.INCOME else "-"
            mark = "✅" if tx.is_reconciled else "⏳"
            st.markdown(f"{mark} {tx.date:%d %b %Y} · {tx.category} · {tx.description or '-'} · **{sign}{baht(tx.amount)}**")
        with col2:
            label = "Undo" if tx.is_reconciled else "Reconcile"
            if st.button(label, key=f"rec_{tx.id}"):
                try:
                    run_async(ops.toggle_reconciled(tx.id))
                    st.rerun()
                except Exception as e:
                    st.error(user_message(e))
        with col3:
            if st.session_state.get("confirm_delete") == tx.id:
                if st.button("Sure?", key=f"del_ok_{tx.id}", type="primary"):
                    st.session_state.confirm_delete = None
                    try:
                        run_async(ops.delete_transaction(tx.id))
                        st.rerun()
                    except Exception as e:
                        st.error(user_message(e))
            elif st.button("🗑️", key=f"del_{tx.id}"):
                st.session_state.confirm_delete = tx.id
                st.rerun()


def render_reports(ops: ResortOperations):
    transactions = ops.ledger.transactions
    months = monthly_breakdown(transactions)
    if not months:
        st.info("No data yet.")
        return

    st.subheader("Monthly")
    st.bar_chart(
        pd.DataFrame(
            [{"month": m.month, "income": float(m.income), "expense": float(m.expense)} for m in months]
        ).set_index("month")
    )

    col1, col2 = st.columns(2)
    for column, tx_type in ((col1, TransactionType.INCOME), (col2, TransactionType.EXPENSE)):
        with column:
            st.subheader(f"{tx_type.value.title()} by category")
            breakdown = category_breakdown(transactions, tx_type)
            if breakdown:
                st.dataframe(
                    pd.DataFrame(
                        [{"category": k, "amount": float(v)} for k, v in breakdown.items()]
                    ),
                    hide_index=True,
                )


def render_pms_page(ops: ResortOperations):
    """Render the bookings list and OTA import."""
    st.title("🏨 PMS / Bookings")

    tab_bookings, tab_import = st.tabs(["Bookings", "Import OTA File"])

    with tab_bookings:
        render_bookings(ops)
    with tab_import:
        render_import(ops)


def render_bookings(ops: ResortOperations):
    bookings = ops.store.bookings
    if not bookings:
        st.info("No bookings yet. Lock a room at the Front Desk or import an OTA file.")
        return

    paid = booking_payment_statuses(bookings, ops.ledger.transactions)

    for booking in bookings:
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(
                f"**{booking.guest_name}** · Room {booking.room_number} · "
                f"{booking.check_in:%d %b} → {booking.check_out:%d %b} · {baht(booking.total_amount)}"
                + (f" · {booking.ota_channel}" if booking.ota_channel else "")
            )
        with col2:
            if booking.status == BookingStatus.LOCKED:
                remaining = ops.store.lock_remaining(booking.id)
                minutes, seconds = divmod(int(remaining.total_seconds()), 60)
                st.markdown(f"⌛ Locked · expires in {minutes:02d}:{seconds:02d}")
            else:
                st.markdown(f"{booking.status.value.replace('_', ' ').title()} · {'💰 Paid' if paid[booking.id] else 'Unpaid'}")
        with col3:
            if booking.status == BookingStatus.CHECKED_IN:
                if st.button("Check out", key=f"out_{booking.id}"):
                    try:
                        run_async(ops.check_out(booking.id))
                        st.rerun()
                    except Exception as e:
                        st.error(user_message(e))
            elif not paid[booking.id] and booking.status != BookingStatus.CHECKED_OUT:
                if st.button("💰 Paid", key=f"pay_{booking.id}"):
                    try:
                        run_async(ops.record_booking_payment(booking.id))
                        st.rerun()
                    except Exception as e:
                        st.error(user_message(e))


def render_import(ops: ResortOperations):
    upload = st.file_uploader(
        "Reservation export (XLSX / XLS / CSV)",
        type=["xlsx", "xls", "csv"],
        help="Exports from the channel manager or OTA extranet",
    )

    if upload and st.button("🔍 Preview", type="primary"):
        try:
            st.session_state.import_result = ops.import_bookings(upload, filename=upload.name)
        except Exception as e:
            st.error(user_message(e))

    result = st.session_state.get("import_result")
    if result is None:
        return

    st.markdown(f"**{len(result.bookings)}** bookings ready · total {baht(result.total_amount)}")
    if result.bookings:
        st.dataframe(
            pd.DataFrame([
                {
                    "guest": b.guest_name,
                    "room": b.room_number,
                    "check_in": b.check_in,
                    "check_out": b.check_out,
                    "nights": b.nights,
                    "total": float(b.total_amount),
                    "channel": b.ota_channel,
                }
                for b in result.bookings
            ]),
            hide_index=True,
        )
    if result.errors:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ {len(result.errors)} row(s) skipped</h4>
            <p>{"<br>".join(str(e) for e in result.errors)}</p>
        </div>
        """, unsafe_allow_html=True)

    if result.bookings and st.button("✅ Import Bookings"):
        try:
            added = run_async(ops.confirm_import(result))
            st.session_state.import_result = None
            st.success(f"✅ Imported {len(added)} bookings")
        except Exception as e:
            st.error(user_message(e))


def render_settings_page(ops: ResortOperations):
    """Render the settings page."""
    st.title("⚙️ Settings")

    profile = ops.profile
    st.markdown("### Resort Profile")
    with st.form("profile"):
        resort_name = st.text_input("Resort name", value=profile.resort_name)
        resort_address = st.text_area("Address", value=profile.resort_address)
        tax_id = st.text_input("Tax ID", value=profile.tax_id)
        phone = st.text_input("Phone", value=profile.phone)
        ai_model = st.text_input(
            "AI model (optional)",
            value=profile.ai_model or "",
            help="Leave empty to use the configured Gemini model",
        )
        auto_reconcile = st.checkbox(
            "Auto-reconcile new transactions",
            value=profile.auto_reconcile,
        )
        if st.form_submit_button("💾 Save Settings", type="primary"):
            try:
                run_async(ops.update_settings(
                    resort_name=resort_name,
                    resort_address=resort_address,
                    tax_id=tax_id,
                    phone=phone,
                    ai_model=ai_model or None,
                    auto_reconcile=auto_reconcile,
                ))
                st.success("✅ Settings saved")
            except Exception as e:
                st.error(user_message(e))

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI scanning)", "gemini"),
        ("Application", "app"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    with st.expander("📜 Recent Activity"):
        for event in ops.audit_logger.recent_events[:30]:
            st.markdown(f"`{event.timestamp:%d %b %H:%M}` {event.event_type.value} · {event.description}")

    st.markdown("---")
    st.markdown("### Danger Zone")
    confirm = st.checkbox("I understand this deletes every booking and transaction")
    if st.button("🗑️ Clear All Data", disabled=not confirm):
        try:
            run_async(ops.clear_all_data())
            st.success("All data cleared")
        except Exception as e:
            st.error(user_message(e))

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
