"""
Streamlit Frontend for Kimbila

This is the screen the shop owner uses all day: record a sale, add
stock, note who owes what, and glance at today's numbers.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted
3. Clear error messages in simple language
4. Visual feedback for all operations
"""

import asyncio
import warnings

import streamlit as st

from kimbila.config import get_settings, validate_all_settings
from kimbila.errors import LedgerError, PersistenceWarning, ValidationError
from kimbila.ledger import LedgerService
from kimbila.models.ledger import PaymentMethod
from kimbila.orchestrator import create_app_components
from kimbila.queries import LedgerQueries
from kimbila.validation import summarize_issues


# Page configuration
st.set_page_config(
    page_title="Kimbila",
    page_icon="🏪",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


PAYMENT_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.DEBT: "On credit",
    PaymentMethod.TRANSFER: "Transfer",
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
        st.error(f"Failed to open your data: {e}")
        return create_app_components(use_storage=False)


def money(amount) -> str:
    label = get_settings().app.currency_label
    return f"{label} {amount:,.2f}"


def run_action(ledger: LedgerService, action, success_message: str):
    """
    Run a ledger action and show the outcome.

    Validation problems are shown under the form; a failed save is
    shown as a warning because the change itself did happen.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", PersistenceWarning)
        try:
            result = action()
        except ValidationError as e:
            st.error(summarize_issues(e.issues))
            return None
        except LedgerError as e:
            st.error(str(e))
            return None

    st.success(success_message)
    if any(issubclass(w.category, PersistenceWarning) for w in caught):
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Not saved to disk</h4>
            <p>{ledger.last_persistence_error}</p>
            <p>Your change is kept while the app is open.</p>
        </div>
        """, unsafe_allow_html=True)
    return result


def main():
    """Main application entry point."""
    ledger, queries, advice_flow = get_components()

    if "business_name" not in st.session_state:
        st.session_state.business_name = get_settings().app.business_name

    st.sidebar.title(f"🏪 {st.session_state.business_name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "🛒 Sales", "📦 Inventory", "👥 Debts", "💡 Tips", "⚙️ Settings"],
        index=0,
    )

    if page == "🏠 Dashboard":
        render_dashboard(queries)
    elif page == "🛒 Sales":
        render_sales_page(ledger, queries)
    elif page == "📦 Inventory":
        render_inventory_page(ledger, queries)
    elif page == "👥 Debts":
        render_debts_page(ledger, queries)
    elif page == "💡 Tips":
        render_tips_page(advice_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard(queries: LedgerQueries):
    """Today's numbers and the latest sales."""
    summary = queries.summary()
    st.title(f"Hello, {st.session_state.business_name}!")
    st.caption(f"Today's summary ({summary.computed_at:%Y-%m-%d})")

    col1, col2 = st.columns(2)
    col1.metric("Sales today", money(summary.todays_revenue))
    col2.metric("Profit today", money(summary.todays_profit))
    col3, col4 = st.columns(2)
    col3.metric("Owed to you", money(summary.pending_debt_total))
    col4.metric("Low stock items", summary.low_stock_count)

    st.subheader("Recent sales")
    recent = queries.recent_sales(limit=5)
    if not recent:
        st.info("No sales yet.")
    for sale in recent:
        st.markdown(
            f"**{sale.product_name}** · {sale.date:%H:%M} · "
            f"{PAYMENT_LABELS[sale.payment_method]} · +{money(sale.total)}"
        )


def render_sales_page(ledger: LedgerService, queries: LedgerQueries):
    """Record a sale and browse the history."""
    st.title("🛒 Sales")

    products = ledger.state.products.values()
    with st.expander("➕ New sale", expanded=not queries.all_sales()):
        if not products:
            st.info("Add a product in Inventory first.")
        else:
            with st.form("new_sale", clear_on_submit=True):
                product = st.selectbox(
                    "Product",
                    options=products,
                    format_func=lambda p: f"{p.name} ({money(p.price)})",
                )
                quantity = st.number_input("Quantity", min_value=1, value=1, step=1)
                method = st.selectbox(
                    "Payment",
                    options=list(PaymentMethod),
                    format_func=lambda m: PAYMENT_LABELS[m],
                )
                customer = st.text_input("Customer name (needed for credit)")
                if st.form_submit_button("Finish sale", type="primary"):
                    receipt = run_action(
                        ledger,
                        lambda: ledger.record_sale(product.id, quantity, method, customer),
                        "Sale recorded",
                    )
                    if receipt and receipt.oversold:
                        st.warning(
                            f"{receipt.sale.product_name} is now at {receipt.stock_after} in stock."
                        )
                    if receipt and method == PaymentMethod.DEBT and receipt.debt is None:
                        st.warning("No customer name given, so no debt was opened.")

    for sale in queries.all_sales():
        with st.container(border=True):
            st.markdown(f"**{sale.product_name}** · {sale.date:%Y-%m-%d %H:%M}")
            st.markdown(
                f"{sale.quantity} units · {PAYMENT_LABELS[sale.payment_method]} · "
                f"{money(sale.total)} (profit {money(sale.profit)})"
                + (f" · 👤 {sale.customer_name}" if sale.customer_name else "")
            )


def render_inventory_page(ledger: LedgerService, queries: LedgerQueries):
    """Catalog with add and delete."""
    st.title("📦 Inventory")
    st.caption(f"Stock value: {money(queries.inventory_value())}")

    with st.expander("➕ New product"):
        with st.form("new_product", clear_on_submit=True):
            name = st.text_input("Product name")
            categories = sorted(queries.distinct_categories())
            category = st.selectbox("Category", options=["", *categories])
            new_category = st.text_input("...or a new category")
            col1, col2 = st.columns(2)
            cost = col1.text_input("Cost")
            price = col2.text_input("Price")
            stock = st.text_input("Opening stock")
            if st.form_submit_button("Save product", type="primary"):
                run_action(
                    ledger,
                    lambda: ledger.add_product({
                        "name": name,
                        "category": new_category or category,
                        "cost": cost,
                        "price": price,
                        "stock": stock,
                    }),
                    f"Product added: {name}",
                )

    threshold = get_settings().app.low_stock_threshold
    for product in ledger.state.products.values():
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            flag = "🔴 " if product.stock < threshold else ""
            col1.markdown(
                f"{flag}**{product.name}** · 🏷️ {product.category}  \n"
                f"Cost {money(product.cost)} · Price {money(product.price)} · "
                f"{product.stock} on hand"
            )
            confirm_key = f"confirm_delete_{product.id}"
            if st.session_state.get(confirm_key):
                if col2.button("Confirm", key=f"yes_{product.id}"):
                    run_action(
                        ledger,
                        lambda: ledger.delete_product(product.id),
                        f"Deleted {product.name}",
                    )
                    st.session_state[confirm_key] = False
                    st.rerun()
            elif col2.button("🗑️", key=f"del_{product.id}"):
                st.session_state[confirm_key] = True
                st.rerun()


def render_debts_page(ledger: LedgerService, queries: LedgerQueries):
    """Who owes what."""
    st.title("👥 Debts")
    st.caption(f"Outstanding: {money(queries.pending_debt_total())}")

    with st.expander("➕ New debt"):
        with st.form("new_debt", clear_on_submit=True):
            customer = st.text_input("Customer name")
            amount = st.text_input("Amount")
            description = st.text_input("Reason / description")
            if st.form_submit_button("Record debt", type="primary"):
                run_action(
                    ledger,
                    lambda: ledger.add_debt(customer, amount, description),
                    "Debt recorded",
                )

    debts = queries.all_debts()
    if not debts:
        st.info("Nobody owes you anything!")
    for debt in debts:
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            if debt.is_pending:
                col1.markdown(
                    f"🔴 **{debt.customer_name}** · {money(debt.amount)}  \n"
                    f"{debt.description} · {debt.date:%Y-%m-%d}"
                )
                if col2.button("✅ Paid", key=f"pay_{debt.id}"):
                    run_action(ledger, lambda: ledger.settle_debt(debt.id), "Marked as paid")
                    st.rerun()
            else:
                col1.markdown(
                    f"✅ ~~{debt.customer_name}~~ · {money(debt.amount)}  \n"
                    f"{debt.description} · {debt.date:%Y-%m-%d}"
                )


def render_tips_page(advice_flow):
    """Ask the advisor for tips."""
    st.title("💡 Business tips")
    st.markdown("Smart analysis of your sales to help you grow.")

    if advice_flow is None:
        st.warning("The advisor is not configured. Set GEMINI_API_KEY in your .env file.")
        return

    if st.button("Ask for advice", type="primary"):
        with st.spinner("Looking at your numbers..."):
            run_async(advice_flow.get_advice(st.session_state.business_name))

    if advice_flow.latest_advice:
        st.markdown(advice_flow.latest_advice)
    else:
        st.info("Press the button above to see how to improve your business today.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    name = st.text_input("Business name", value=st.session_state.business_name, max_chars=100)
    if name.strip() and name.strip() != st.session_state.business_name:
        st.session_state.business_name = name.strip()
        st.rerun()

    st.markdown("### Connection Status")
    status = validate_all_settings()
    services = [
        ("Gemini (Tips)", "gemini"),
        ("Local storage", "storage"),
        ("App", "app"),
    ]
    for label, key in services:
        if status.get(key, False):
            st.success(f"✅ {label} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {label} - {error}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
