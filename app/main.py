"""
Streamlit Frontend for Apartment Ledger

This is the dashboard the owners use to keep the apartment's books.

DESIGN PRINCIPLES:
1. One month on screen at a time, with easy navigation
2. Every figure on screen is derived from stored records
3. Clear error messages when a save fails
4. Nothing changes on screen unless the save succeeded

The UI never does arithmetic itself:
- Totals, balances and projections come from the ledger session
- Forms build drafts; the session validates and stores them
"""

import asyncio
from decimal import Decimal

import streamlit as st
from pydantic import ValidationError

from apartment_ledger.config import get_settings, validate_all_settings
from apartment_ledger.models.ledger import (
    EntryCategory,
    EntryDraft,
    EntryType,
    Periodicity,
    RentalIncome,
)
from apartment_ledger.orchestrator import LedgerSession, create_app_components
from apartment_ledger.services.image import ImageServiceError
from apartment_ledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Apartment Ledger",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .owner-card {
        padding: 16px;
        border-radius: 10px;
        border-left: 5px solid #004085;
        background-color: #f1f5fb;
        margin: 10px 0;
    }
    .installment-tag {
        font-size: 0.8em;
        color: #6c757d;
    }
</style>
""", unsafe_allow_html=True)


CATEGORY_LABELS = {
    EntryCategory.FINANCING_BANK: "Bank financing",
    EntryCategory.FINANCING_BUILDER: "Builder financing",
    EntryCategory.CONDOMINIUM: "Condominium",
    EntryCategory.OTHER: "Other",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(value: Decimal) -> str:
    currency = get_settings().app.currency_code
    return f"{currency} {value:,.2f}"


def report_save_error(error: Exception) -> None:
    """Show a failed save without touching what is on screen."""
    st.toast(f"Could not save: {error}", icon="⚠️")
    st.error(f"Your change was not saved: {error}")


def main():
    """Main application entry point."""
    session, _ = get_components()

    if not st.session_state.get("ledger_loaded"):
        try:
            with st.spinner("Loading ledger..."):
                run_async(session.load())
            st.session_state.ledger_loaded = True
        except StorageError as e:
            st.error(f"Could not load the ledger: {e}")
            st.stop()

    # Sidebar navigation
    st.sidebar.title("🏠 Apartment Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📅 Month", "📈 Projection", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Pick a month
        2. Add the month's expenses and incomes
        3. Record the rental income
        4. Check what each owner owes
        """
    )

    # Route to appropriate page
    if page == "📅 Month":
        render_month_page(session)
    elif page == "📈 Projection":
        render_projection_page(session)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# MONTH PAGE
# =============================================================================

def render_month_selector(session: LedgerSession):
    col1, col2, col3, col4 = st.columns([1, 3, 1, 1])

    with col1:
        if st.button("◀ Previous"):
            session.previous_period()
            st.rerun()
    with col2:
        period = session.current_period
        st.markdown(f"### {period.first_day.strftime('%B %Y')}")
    with col3:
        if st.button("Next ▶"):
            session.next_period()
            st.rerun()
    with col4:
        if st.button("Today"):
            session.go_to_current_period()
            st.rerun()


def render_summary(session: LedgerSession):
    summary = session.summary()
    col1, col2, col3 = st.columns(3)
    col1.metric("Total expenses", money(summary.total_expenses))
    col2.metric("Rental income", money(summary.rental_income))
    col3.metric("Net balance", money(summary.net_balance))


def render_rental_income_form(session: LedgerSession):
    rental = session.rental_income

    with st.expander("🏷️ Rental income", expanded=rental.is_active):
        with st.form(f"rental_{session.current_period.key}"):
            name = st.text_input("Description", value=rental.name)
            value = st.text_input("Monthly rent", value=str(rental.value))
            is_active = st.checkbox("Apartment is rented", value=rental.is_active)
            duration = st.number_input(
                "Contract length (months, 0 = no end)",
                min_value=0,
                value=rental.contract_duration or 0,
                step=1,
            )
            start = st.date_input(
                "Contract start",
                value=rental.contract_start_date.first_day if rental.contract_start_date else None,
            )
            counts_from = st.date_input(
                "Counts from (optional)",
                value=rental.start_date.first_day if rental.start_date else None,
            )

            if st.form_submit_button("💾 Save rental income", type="primary"):
                try:
                    updated = RentalIncome(
                        id=rental.id,
                        name=name or rental.name,
                        value=value,
                        is_active=is_active,
                        contract_duration=duration or None,
                        contract_start_date=start,
                        start_date=counts_from,
                    )
                except ValidationError as e:
                    st.error(f"Please check the contract details: {e.errors()[0]['msg']}")
                    return
                try:
                    run_async(session.set_rental_income(updated))
                    st.rerun()
                except StorageError as e:
                    report_save_error(e)


def render_owner_cards(session: LedgerSession):
    st.markdown("### 👥 Owners")
    balances = {}
    if session.owners:
        try:
            balances = {b.owner_id: b for b in session.owner_balances()}
        except ValueError as e:
            st.warning(f"Balances can't be split: {e}. Give at least one owner a percentage.")
    columns = st.columns(max(len(session.owners), 1))

    for column, owner in zip(columns, session.owners):
        balance = balances.get(owner.id)
        with column:
            if owner.image_ref:
                st.image(owner.image_ref, width=96)
            if balance is None:
                figures = "<p>Balance unavailable</p>"
            else:
                figures = (
                    f"<p>Share of expenses: <strong>{money(balance.total_expenses)}</strong></p>"
                    f"<p>Rental credit: <strong>{money(balance.rental_credit)}</strong></p>"
                    f"<p>To pay: <strong>{money(balance.final_balance)}</strong></p>"
                )
            st.markdown(f"""
            <div class="owner-card">
                <h4>{owner.name}</h4>
                {figures}
            </div>
            """, unsafe_allow_html=True)

            with st.expander("Edit"):
                name = st.text_input("Name", value=owner.name, key=f"name_{owner.id}")
                percentage = st.text_input(
                    "Percentage",
                    value=str(owner.percentage),
                    key=f"pct_{owner.id}",
                )
                if st.button("Save", key=f"save_owner_{owner.id}"):
                    try:
                        run_async(session.update_owner(
                            owner.id,
                            name=name,
                            percentage=percentage,
                        ))
                        st.rerun()
                    except ValidationError as e:
                        st.error(f"Please check the owner details: {e.errors()[0]['msg']}")
                    except ValueError as e:
                        st.error(str(e))
                    except StorageError as e:
                        report_save_error(e)

                picture = st.file_uploader(
                    "Picture",
                    type=get_settings().app.supported_formats_list,
                    key=f"picture_{owner.id}",
                )
                if picture and st.button("Upload picture", key=f"upload_{owner.id}"):
                    with st.spinner("Uploading..."):
                        try:
                            run_async(session.upload_owner_image(
                                owner.id,
                                picture.read(),
                                filename=picture.name,
                                mime_type=picture.type,
                            ))
                            st.rerun()
                        except (ImageServiceError, ValidationError) as e:
                            st.error(f"Picture not accepted: {e}")
                        except StorageError as e:
                            report_save_error(e)


def render_entries(session: LedgerSession):
    st.markdown("### 🧾 Entries")
    entries = session.entries

    if not entries:
        st.info("No expenses or incomes recorded for this month yet.")

    for entry in entries:
        col1, col2, col3, col4 = st.columns([4, 2, 2, 1])
        with col1:
            st.markdown(f"**{entry.name or 'Untitled'}**")
            if entry.is_installment:
                st.markdown(
                    f"<span class='installment-tag'>Installment "
                    f"{entry.current_installment}/{entry.total_installments}</span>",
                    unsafe_allow_html=True,
                )
        with col2:
            sign = "+" if entry.type == EntryType.INCOME else "-"
            st.markdown(f"{sign} {money(entry.value)}")
        with col3:
            st.markdown(CATEGORY_LABELS[entry.category])
            if entry.due_day:
                st.caption(f"Due on day {entry.due_day}")
        with col4:
            if st.button("🗑️", key=f"delete_{entry.id}", help="Delete this entry"):
                try:
                    run_async(session.delete_entry(entry.id))
                    st.rerun()
                except StorageError as e:
                    report_save_error(e)
        render_edit_entry_form(session, entry)


def render_edit_entry_form(session: LedgerSession, entry):
    """Edit a single entry. Other installments of the same plan are untouched."""
    with st.expander("✏️ Edit"):
        with st.form(f"edit_{entry.id}"):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Description", value=entry.name)
                value = st.text_input("Amount", value=str(entry.value))
                entry_type = st.radio(
                    "Type",
                    options=list(EntryType),
                    index=list(EntryType).index(entry.type),
                    format_func=lambda x: x.value.title(),
                    horizontal=True,
                )
                category = st.selectbox(
                    "Category",
                    options=list(EntryCategory),
                    index=list(EntryCategory).index(entry.category),
                    format_func=lambda x: CATEGORY_LABELS[x],
                )
            with col2:
                periodicity = st.selectbox(
                    "Recurrence",
                    options=list(Periodicity),
                    index=list(Periodicity).index(entry.periodicity),
                    format_func=lambda x: x.value.replace("_", " ").title(),
                )
                installments = st.text_input(
                    "Installments",
                    value=str(entry.total_installments),
                )
                due_day = st.text_input(
                    "Due day (optional)",
                    value=str(entry.due_day) if entry.due_day else "",
                )
                start = st.date_input(
                    "Counts from (optional)",
                    value=entry.start_date.first_day if entry.start_date else None,
                )

            if st.form_submit_button("💾 Save entry", type="primary"):
                try:
                    run_async(session.update_entry(
                        entry.id,
                        name=name,
                        value=value,
                        type=entry_type,
                        category=category,
                        periodicity=periodicity,
                        total_installments=installments,
                        due_day=due_day,
                        start_date=start,
                    ))
                    st.rerun()
                except ValidationError as e:
                    st.error(f"Please check the entry: {e.errors()[0]['msg']}")
                except ValueError as e:
                    st.error(str(e))
                except StorageError as e:
                    report_save_error(e)


def render_add_entry_form(session: LedgerSession):
    with st.expander("➕ Add expense or income"):
        with st.form("add_entry", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Description")
                value = st.text_input("Amount", placeholder="0.00")
                entry_type = st.radio(
                    "Type",
                    options=list(EntryType),
                    format_func=lambda x: x.value.title(),
                    horizontal=True,
                )
                category = st.selectbox(
                    "Category",
                    options=list(EntryCategory),
                    format_func=lambda x: CATEGORY_LABELS[x],
                )
            with col2:
                periodicity = st.selectbox(
                    "Recurrence",
                    options=list(Periodicity),
                    format_func=lambda x: x.value.replace("_", " ").title(),
                )
                installments = st.text_input(
                    "Installments",
                    value="1",
                    help="An entry with N installments is added to this month and the next N-1",
                )
                due_day = st.text_input("Due day (optional)")
                start = st.date_input("Counts from (optional)", value=None)

            if st.form_submit_button("Add", type="primary"):
                try:
                    draft = EntryDraft(
                        name=name,
                        value=value,
                        category=category,
                        periodicity=periodicity,
                        type=entry_type,
                        due_day=due_day,
                        start_date=start,
                        total_installments=installments,
                    )
                except ValidationError as e:
                    st.error(f"Please check the entry: {e.errors()[0]['msg']}")
                    return
                try:
                    run_async(session.add_entry(draft))
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))
                except StorageError as e:
                    report_save_error(e)


def render_month_page(session: LedgerSession):
    """Render the monthly dashboard."""
    st.title("📅 Monthly ledger")

    render_month_selector(session)
    render_summary(session)
    st.markdown("---")
    render_rental_income_form(session)
    render_owner_cards(session)
    st.markdown("---")
    render_entries(session)
    render_add_entry_form(session)


# =============================================================================
# PROJECTION PAGE
# =============================================================================

def render_projection_page(session: LedgerSession):
    """Render the yearly projection."""
    st.title("📈 Yearly projection")

    span = get_settings().ledger.projection_year_span
    years = session.available_years(span)
    year = st.selectbox(
        "Year",
        options=years,
        index=years.index(session.selected_year) if session.selected_year in years else 0,
    )
    session.select_year(year)

    rows = session.projections()
    totals = session.projection_summary()

    col1, col2, col3 = st.columns(3)
    col1.metric("Projected revenue", money(totals.total_revenue))
    col2.metric("Projected expenses", money(totals.total_expenses))
    col3.metric("Net", money(totals.net))

    st.line_chart(
        [
            {
                "date": row.date,
                "Revenue": float(row.revenue),
                "Expenses": float(row.expenses),
            }
            for row in rows
        ],
        x="date",
        y=["Revenue", "Expenses"],
    )

    with st.expander("Month by month"):
        for row in rows:
            st.markdown(
                f"**{row.month}**: revenue {money(row.revenue)}, "
                f"expenses {money(row.expenses)}, net {money(row.net)}"
            )


# =============================================================================
# SETTINGS PAGE
# =============================================================================

def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Cloudinary (Owner pictures)", "cloudinary"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Calculation")
    ledger_settings = get_settings().ledger
    st.markdown(f"**Split policy:** {ledger_settings.split_policy.value}")
    st.markdown(f"**Expense total:** {ledger_settings.expense_filter.value.replace('_', ' ')}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your credentials. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
