"""
Streamlit Frontend for SpendRing

One glanceable number: how much has been spent today or this month, and
how close that is to the cap.

DESIGN PRINCIPLES:
1. The home screen shows one number and one ring, nothing else
2. Every other action is one step away (add, budget, history)
3. Clear error messages in simple language
4. Nothing is saved without an explicit "Save" action

Streamlit has no pointer gestures, so the gesture commands of the home
screen (tap, double tap, swipe) are offered as buttons that issue the same
commands.
"""

import asyncio
from datetime import date
from typing import Optional

import streamlit as st

from spendring.config import get_settings, validate_all_settings
from spendring.gestures import AsyncioScheduler, CommandType
from spendring.home import HomeScreenController, format_currency, format_hero_amount, should_onboard
from spendring.models import AggregationResult, Expense, Period, Recurrence, SeverityTier
from spendring.orchestrator import AppComponents, HomeFlow, create_app_components
from spendring.services import FileSessionCounter, NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="SpendRing",
    page_icon="💸",
    layout="centered",
    initial_sidebar_state="collapsed",
)

RING_COLOURS = {
    SeverityTier.NORMAL: "#2c3e50",
    SeverityTier.WARNING: "#f39c12",
    SeverityTier.OVER: "#e74c3c",
}

# Custom CSS for the hero number
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .hero {
        text-align: center;
        font-size: 4.5em;
        font-weight: 200;
        margin: 0.2em 0;
    }
    .hero-caption {
        text-align: center;
        color: #7f8c8d;
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
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def get_session_count() -> Optional[int]:
    """Count this browser session once; None if the counter is unusable."""
    if "session_count" not in st.session_state:
        counter = FileSessionCounter(get_settings().home.session_counter_path)
        try:
            st.session_state.session_count = counter.increment()
        except OSError:
            st.session_state.session_count = None
    return st.session_state.session_count


async def load_home_snapshot(
    home_flow: HomeFlow,
    owner_id: str,
    period: Period,
) -> tuple[Optional[AggregationResult], Optional[str]]:
    """Refresh a home controller and read the result for one period."""
    controller = HomeScreenController(home_flow, owner_id, AsyncioScheduler())
    try:
        await controller.refresh()
        controller.switch_view(period)
        return controller.current_result, controller.error
    finally:
        controller.destroy()


def main():
    """Main application entry point."""
    components = get_components()
    owner_id = get_settings().app.default_owner_id

    st.session_state.setdefault("period", Period.TODAY)
    st.session_state.setdefault("command", None)
    st.session_state.setdefault("editing_expense_id", None)

    if "defaults_checked" not in st.session_state:
        run_async(components.category_flow.ensure_default_categories(owner_id))
        st.session_state.defaults_checked = True

    # Sidebar navigation
    st.sidebar.title("💸 SpendRing")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Home", "📜 Transactions", "🏷️ Categories", "⚙️ Settings"],
        index=0,
    )

    if page == "🏠 Home":
        render_home_page(components, owner_id)
    elif page == "📜 Transactions":
        render_transactions_page(components, owner_id)
    elif page == "🏷️ Categories":
        render_categories_page(components, owner_id)
    elif page == "⚙️ Settings":
        render_settings_page(components, owner_id)


def render_home_page(components: AppComponents, owner_id: str):
    """Render the hero number, ring and the command buttons."""
    home_settings = get_settings().home
    if should_onboard(get_session_count(), home_settings.onboarding_session_limit):
        st.info(
            "👋 Tap to add an expense · Double-tap to set your budget · "
            "Swipe left/right to switch Today and This Month · Swipe up for history"
        )

    period = st.radio(
        "View",
        [Period.TODAY, Period.THIS_MONTH],
        index=0 if st.session_state.period == Period.TODAY else 1,
        format_func=lambda p: p.value,
        horizontal=True,
        label_visibility="collapsed",
    )
    st.session_state.period = period

    result, error = run_async(load_home_snapshot(components.home_flow, owner_id, period))
    if error:
        st.error(f"❌ {error}")
        return

    total = result.total if result else 0
    tier = result.tier if result else SeverityTier.NORMAL
    colour = RING_COLOURS[tier]

    st.markdown(
        f'<div class="hero" style="color:{colour}">{format_hero_amount(total)}</div>',
        unsafe_allow_html=True,
    )
    if result and result.has_cap:
        st.progress(result.progress_ratio)
        st.markdown(
            f'<div class="hero-caption">{period.value}: '
            f"{format_currency(result.total)} of {format_currency(result.cap)}</div>",
            unsafe_allow_html=True,
        )
    else:
        st.markdown(
            f'<div class="hero-caption">{period.value} · no cap set</div>',
            unsafe_allow_html=True,
        )

    st.markdown("---")
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("➕ Add expense"):
            st.session_state.command = CommandType.OPEN_EXPENSE_EDITOR
    with col2:
        if st.button("🎯 Set budget"):
            st.session_state.command = CommandType.OPEN_BUDGET_EDITOR
    with col3:
        if st.button("📜 History"):
            st.session_state.command = CommandType.OPEN_TRANSACTION_PANEL

    command = st.session_state.command
    if command == CommandType.OPEN_EXPENSE_EDITOR:
        render_expense_form(components, owner_id)
    elif command == CommandType.OPEN_BUDGET_EDITOR:
        render_budget_form(components, owner_id)
    elif command == CommandType.OPEN_TRANSACTION_PANEL:
        render_transactions_page(components, owner_id)


def render_expense_form(
    components: AppComponents,
    owner_id: str,
    expense: Optional[Expense] = None,
):
    """Add a new expense, or replace an existing one when it is given."""
    categories = run_async(components.category_flow.list_categories(owner_id))
    if not categories:
        st.warning("Add a category first (Categories page).")
        return

    recurrences = list(Recurrence)
    category_index = next(
        (i for i, c in enumerate(categories) if expense and c.id == expense.category_id),
        0,
    )
    form_key = f"expense_form_{expense.id}" if expense else "expense_form"

    with st.form(form_key, clear_on_submit=expense is None):
        st.subheader("Edit expense" if expense else "Add expense")
        item_name = st.text_input("What did you buy?", value=expense.item_name if expense else "")
        amount = st.text_input(
            "Amount",
            value=str(expense.amount) if expense else "",
            placeholder="0.00",
        )
        category = st.selectbox(
            "Category", categories, index=category_index, format_func=lambda c: c.display_name,
        )
        expense_date = st.date_input("Date", value=expense.expense_date if expense else date.today())
        recurrence = st.selectbox(
            "Repeats",
            recurrences,
            index=recurrences.index(expense.recurrence) if expense else 0,
            format_func=lambda r: r.value.title(),
        )
        submitted = st.form_submit_button("💾 Save")

    if not submitted:
        return

    try:
        saved, validation = run_async(components.expense_flow.save_expense(
            owner_id=owner_id,
            item_name=item_name,
            amount=amount,
            category_id=category.id if category else None,
            expense_date=expense_date,
            recurrence=recurrence,
            expense_id=expense.id if expense else None,
        ))
    except NotFoundError:
        st.error("❌ This expense no longer exists")
        st.session_state.editing_expense_id = None
        return
    except StorageError:
        st.error("❌ Failed to save expense")
        return

    if saved is None:
        st.error(validation.first_error)
        return
    for warning in validation.warnings:
        st.warning(f"⚠️ {warning}")
    st.success(f"✅ Saved {saved.item_name} ({format_currency(saved.amount)})")
    st.session_state.command = None
    st.session_state.editing_expense_id = None


def render_budget_form(components: AppComponents, owner_id: str):
    budget = run_async(components.budget_flow.load_budget(owner_id))

    with st.form("budget_form"):
        st.subheader("Spending caps")
        daily = st.text_input(
            "Daily cap",
            value=str(budget.daily_cap) if budget and budget.daily_cap is not None else "",
        )
        monthly = st.text_input(
            "Monthly cap",
            value=str(budget.monthly_cap) if budget and budget.monthly_cap is not None else "",
        )
        submitted = st.form_submit_button("💾 Save budget")

    if not submitted:
        return

    try:
        saved, validation = run_async(components.budget_flow.save_budget(owner_id, daily, monthly))
    except StorageError:
        st.error("❌ Failed to save budget")
        return

    if saved is None:
        st.error(validation.first_error)
        return
    st.success("✅ Budget saved")
    st.session_state.command = None


def render_transactions_page(components: AppComponents, owner_id: str):
    """Render every expense grouped by day."""
    st.subheader("📜 Transactions")
    try:
        groups = run_async(components.expense_flow.list_transactions(owner_id))
        categories = run_async(components.category_flow.category_lookup(owner_id))
    except StorageError:
        st.error("❌ Failed to load transactions")
        return

    if not groups:
        st.info("No expenses yet. Tap ➕ to add your first one.")
        return

    for group in groups:
        st.markdown(f"**{group.label}** · {format_currency(group.total)}")
        for expense in group.expenses:
            category = categories.get(expense.category_id) if expense.category_id else None
            col1, col2, col3, col4 = st.columns([6, 3, 1, 1])
            with col1:
                label = f"{category.emoji} " if category else ""
                st.write(f"{label}{expense.item_name}")
            with col2:
                st.write(format_currency(expense.amount))
            with col3:
                if st.button("✏️", key=f"edit-{expense.id}"):
                    st.session_state.editing_expense_id = expense.id
            with col4:
                if st.button("🗑️", key=f"delete-{expense.id}"):
                    run_async(components.expense_flow.delete_expense(owner_id, expense.id))
                    st.rerun()

            if st.session_state.get("editing_expense_id") == expense.id:
                render_expense_form(components, owner_id, expense)


def render_categories_page(components: AppComponents, owner_id: str):
    st.title("🏷️ Categories")

    with st.form("category_form", clear_on_submit=True):
        col1, col2 = st.columns([1, 4])
        with col1:
            emoji = st.text_input("Emoji", max_chars=16)
        with col2:
            name = st.text_input("Name", max_chars=50)
        submitted = st.form_submit_button("➕ Add category")

    if submitted:
        try:
            created, validation = run_async(
                components.category_flow.add_category(owner_id, name, emoji)
            )
        except StorageError:
            st.error("❌ Failed to save category")
        else:
            if created is None:
                st.error(validation.first_error)
            else:
                st.success(f"✅ Added {created.display_name}")

    for category in run_async(components.category_flow.list_categories(owner_id)):
        col1, col2 = st.columns([5, 1])
        with col1:
            st.write(category.display_name)
        with col2:
            if st.button("🗑️", key=f"category-{category.id}"):
                run_async(components.category_flow.remove_category(owner_id, category.id))
                st.rerun()


def render_settings_page(components: AppComponents, owner_id: str):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    if status.get("google_sheets", False):
        st.success("✅ Google Sheets (Storage) - Connected")
    else:
        error = status.get("google_sheets_error", "Not configured")
        st.warning(f"⚠️ Google Sheets (Storage) - {error}. Data is kept in memory only.")

    st.markdown("---")
    st.markdown("### Delete account")
    st.markdown("This removes all your expenses, budgets and categories, then your account.")

    confirm = st.checkbox("I understand this cannot be undone")
    if st.button("🗑️ Delete my account", disabled=not confirm):
        from spendring.accounts import AccountDeletionError

        try:
            result = run_async(components.deletion_service.delete_account(owner_id))
        except AccountDeletionError as e:
            st.error(f"❌ Failed to delete user account: {e}")
            return

        if result.failed_steps:
            st.warning(f"⚠️ Some data could not be removed: {', '.join(result.failed_steps)}")
        st.success("✅ User account and all data deleted successfully")


if __name__ == "__main__":
    main()
