"""
Streamlit Dashboard for the Portfolio Manager.

Pages: Dashboard overview, Stocks, Bonds, Cash Flow and Performance.
Forms write through the service layer; charts read from analytics.
"""

import time
from datetime import date, timedelta
from typing import Literal, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from config import config
from db import BondType, CashflowType, RecurringFrequency, init_db
from analytics import (
    AlertSeverity,
    capture_snapshot,
    compute_alerts,
    compute_allocation,
    compute_overview,
    compute_performance,
    list_snapshots,
)
from services import (
    RecordNotFoundError,
    RecordValidationError,
    create_bond,
    create_entry,
    create_stock,
    delete_bond,
    delete_entry,
    delete_stock,
    get_bond_summary,
    get_cashflow_summary,
    get_category_totals,
    get_price_history,
    get_stock_summary,
    get_upcoming_maturities,
    list_bonds,
    list_entries,
    list_stocks,
    update_bond,
    update_entry,
    update_stock,
)


# Initialize database on app start
init_db()

PIE_LAYOUT = dict(showlegend=True, margin=dict(t=30, b=20, l=20, r=20), height=320)
PIE_HOVER = "<b>%{label}</b><br>Value: $%{value:,.0f}<br>Weight: %{percent}<extra></extra>"


def configure_page():
    """Configure Streamlit page settings."""
    st.set_page_config(
        page_title=config.ui.page_title,
        page_icon="📊",
        layout=config.ui.layout,
        initial_sidebar_state="expanded",
    )


def render_sidebar() -> str:
    """Render sidebar navigation and return selected page."""
    st.sidebar.title("📊 Portfolio Manager")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        ["Dashboard", "Stocks", "Bonds", "Cash Flow", "Performance"],
        label_visibility="collapsed",
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"👤 {config.user.first_name} {config.user.last_name}")
    st.sidebar.caption("💡 Prices are entered manually")

    return page


def format_currency(value: float) -> str:
    """Format value as currency."""
    return f"${value:,.{config.ui.decimal_places}f}"


def format_percentage(value: float) -> str:
    """Format an already-scaled percentage (12.5 -> 12.5%)."""
    return f"{value:.{config.ui.percentage_decimal_places}f}%"


def celebrate_and_rerun(
    msg: str = "Updating dashboard…",
    delay: float = 1,
    animation: Optional[Literal["balloons", "snow"]] = None,
):
    """Optionally celebrate, then wait briefly and rerun."""
    if animation == "balloons":
        st.balloons()
    elif animation == "snow":
        st.snow()
    with st.status(msg, expanded=False):
        time.sleep(delay)
    st.rerun()


def _donut(df: pd.DataFrame, names: str, title: str, palette=None) -> go.Figure:
    fig = px.pie(
        df,
        values="Value",
        names=names,
        title=title,
        hole=0.4,
        color_discrete_sequence=palette or px.colors.qualitative.Set2,
    )
    fig.update_traces(textposition="inside", textinfo="percent+label", hovertemplate=PIE_HOVER)
    fig.update_layout(**PIE_LAYOUT)
    return fig


# ----------------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------------

def render_dashboard_page():
    """
    Render the overview page.

    Shows:
    - Key metrics (value, gain/loss, monthly cash flow, asset count)
    - Asset allocation donut and per-class breakdown
    - Alerts
    """
    st.header("📌 Dashboard")

    try:
        overview = compute_overview()
        alerts = compute_alerts()
    except Exception as e:
        st.error(f"Error loading portfolio data: {e}")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Portfolio Value", format_currency(overview.total_current_value))
    col2.metric(
        "Total Gain/Loss",
        format_currency(overview.total_gain_loss),
        format_percentage(overview.total_return_percentage),
    )
    col3.metric(
        "Monthly Cash Flow",
        format_currency(overview.cashflow.net_cashflow),
        help=f"Income: {format_currency(overview.cashflow.recent_income)} "
        f"over the last {config.alerts.recent_cashflow_days} days",
    )
    col4.metric(
        "Total Assets",
        f"{overview.total_assets}",
        help=f"{overview.stocks.count} stocks, {overview.bonds.count} bonds",
    )

    st.divider()

    alloc_col, breakdown_col = st.columns(2)

    with alloc_col:
        st.subheader("📊 Asset Allocation")
        if overview.total_current_value > 0:
            alloc_df = pd.DataFrame(
                [
                    {"Asset": "Stocks", "Value": overview.stocks.current_value},
                    {"Asset": "Bonds", "Value": overview.bonds.current_value},
                ]
            )
            st.plotly_chart(_donut(alloc_df, "Asset", ""))
        else:
            st.info("No assets to display. Add stocks or bonds.")

    with breakdown_col:
        st.subheader("🧾 Portfolio Breakdown")
        for label, block in (("Stocks", overview.stocks), ("Bonds", overview.bonds)):
            with st.container(border=True):
                left, right = st.columns([2, 1])
                left.markdown(f"**{label}**")
                left.caption(f"{block.count} holdings")
                right.metric(
                    label,
                    format_currency(block.current_value),
                    f"{block.gain_loss:+,.2f}",
                    label_visibility="collapsed",
                )
        if overview.bonds.annual_income:
            st.success(f"**Annual Bond Income:** {format_currency(overview.bonds.annual_income)}")

    if alerts:
        st.divider()
        st.subheader("🔔 Alerts & Notifications")
        for alert in alerts:
            if alert.severity == AlertSeverity.HIGH:
                st.error(alert.message)
            else:
                st.warning(alert.message)


# ----------------------------------------------------------------------------
# Stocks
# ----------------------------------------------------------------------------

def render_stocks_page():
    """Stock holdings: summary, table, sector split and CRUD forms."""
    st.header("📈 Stocks")

    summary = get_stock_summary()
    stocks = list_stocks()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Holdings", f"{summary.total_stocks}")
    col2.metric("Invested", format_currency(summary.total_invested))
    col3.metric("Current Value", format_currency(summary.current_value))
    col4.metric(
        "Gain/Loss",
        format_currency(summary.total_gain_loss),
        format_percentage(summary.percentage_return),
    )

    if stocks:
        df = pd.DataFrame(
            [
                {
                    "Symbol": s.symbol,
                    "Company": s.company_name,
                    "Quantity": s.quantity,
                    "Purchase Price": s.purchase_price,
                    "Current Price": s.effective_price,
                    "Current Value": s.current_value,
                    "Gain/Loss": s.unrealized_gain_loss,
                    "Change %": s.percentage_change,
                    "Sector": s.sector or "Unknown",
                    "Purchased": s.purchase_date,
                }
                for s in stocks
            ]
        )
        st.dataframe(
            df,
            hide_index=True,
            column_config={
                "Purchase Price": st.column_config.NumberColumn(format="$%.2f"),
                "Current Price": st.column_config.NumberColumn(format="$%.2f"),
                "Current Value": st.column_config.NumberColumn(format="$%.2f"),
                "Gain/Loss": st.column_config.NumberColumn(format="$%.2f"),
                "Change %": st.column_config.NumberColumn(format="%.1f%%"),
            },
        )

        sectors = compute_allocation().stock_sectors
        if sectors:
            sector_df = pd.DataFrame([{"Sector": s.name, "Value": s.value} for s in sectors])
            st.plotly_chart(_donut(sector_df, "Sector", "By Sector", px.colors.qualitative.Pastel))
    else:
        st.info("No stocks yet. Add your first holding below.")

    st.divider()
    add_col, edit_col = st.columns(2)

    with add_col:
        st.subheader("➕ Add Stock")
        with st.form("add_stock_form", clear_on_submit=True):
            symbol = st.text_input("Symbol *", max_chars=10, placeholder="AAPL")
            company_name = st.text_input("Company Name *", max_chars=255)
            quantity = st.number_input("Quantity *", min_value=0.0001, value=1.0, step=1.0, format="%.4f")
            purchase_price = st.number_input("Purchase Price ($) *", min_value=0.01, value=100.0, step=0.01)
            purchase_date = st.date_input("Purchase Date *", value=date.today())
            sector = st.text_input("Sector", max_chars=100)
            notes = st.text_area("Notes", max_chars=1000)

            if st.form_submit_button("Add Stock", type="primary"):
                if not symbol.strip() or not company_name.strip():
                    st.error("❌ Symbol and company name are required")
                else:
                    try:
                        create_stock(
                            symbol=symbol,
                            company_name=company_name.strip(),
                            quantity=quantity,
                            purchase_price=purchase_price,
                            purchase_date=purchase_date,
                            sector=sector.strip() or None,
                            notes=notes.strip() or None,
                        )
                    except RecordValidationError as e:
                        st.error(f"❌ {e}")
                    else:
                        st.success(f"✅ Added {symbol.upper()}")
                        celebrate_and_rerun(animation="balloons")

    with edit_col:
        st.subheader("✏️ Update / Remove")
        if not stocks:
            st.caption("Nothing to edit yet.")
            return

        by_label = {f"{s.symbol} · {s.company_name}": s for s in stocks}
        stock = by_label[st.selectbox("Stock", list(by_label))]

        with st.form("edit_stock_form"):
            current_price = st.number_input(
                "Current Price ($)", min_value=0.01, value=float(stock.effective_price), step=0.01
            )
            quantity = st.number_input(
                "Quantity", min_value=0.0001, value=float(stock.quantity), step=1.0, format="%.4f"
            )
            sector = st.text_input("Sector", value=stock.sector or "")
            notes = st.text_area("Notes", value=stock.notes or "")

            if st.form_submit_button("Save Changes", type="primary"):
                changes = {"current_price": current_price, "quantity": quantity}
                if sector.strip():
                    changes["sector"] = sector.strip()
                if notes.strip():
                    changes["notes"] = notes.strip()
                try:
                    update_stock(stock.id, **changes)
                except (RecordNotFoundError, RecordValidationError) as e:
                    st.error(f"❌ {e}")
                else:
                    celebrate_and_rerun("Stock updated")

        if st.button(f"🗑️ Delete {stock.symbol}", key=f"delete_stock_{stock.id}"):
            try:
                delete_stock(stock.id)
            except RecordNotFoundError as e:
                st.warning(str(e))
            else:
                celebrate_and_rerun("Stock deleted")

        history = get_price_history(stock.id)
        if history:
            with st.expander("Price history"):
                hist_df = pd.DataFrame([{"Recorded": h.recorded_at, "Price": h.price} for h in history])
                fig = px.line(hist_df.sort_values("Recorded"), x="Recorded", y="Price", markers=True)
                fig.update_layout(height=250, margin=dict(t=10, b=10, l=10, r=10))
                st.plotly_chart(fig)


# ----------------------------------------------------------------------------
# Bonds
# ----------------------------------------------------------------------------

def render_bonds_page():
    """Bond holdings: summary, upcoming maturities and CRUD forms."""
    st.header("🏦 Bonds")

    summary = get_bond_summary()
    bonds = list_bonds()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Holdings", f"{summary.total_bonds}")
    col2.metric("Current Value", format_currency(summary.current_value))
    col3.metric(
        "Gain/Loss",
        format_currency(summary.total_gain_loss),
        format_percentage(summary.percentage_return),
    )
    col4.metric(
        "Annual Income",
        format_currency(summary.total_annual_income),
        help=f"Average coupon {format_percentage(summary.average_coupon_rate)}",
    )

    if bonds:
        df = pd.DataFrame(
            [
                {
                    "Issuer": b.issuer,
                    "Type": b.bond_type.value.title(),
                    "Face Value": b.face_value,
                    "Coupon %": b.coupon_rate,
                    "Maturity": b.maturity_date,
                    "Days Left": b.days_to_maturity,
                    "Current Value": b.current_value,
                    "Gain/Loss": b.gain_loss,
                    "Rating": b.rating or "",
                }
                for b in bonds
            ]
        )
        st.dataframe(
            df,
            hide_index=True,
            column_config={
                "Face Value": st.column_config.NumberColumn(format="$%.2f"),
                "Current Value": st.column_config.NumberColumn(format="$%.2f"),
                "Gain/Loss": st.column_config.NumberColumn(format="$%.2f"),
                "Coupon %": st.column_config.NumberColumn(format="%.2f%%"),
            },
        )
    else:
        st.info("No bonds yet. Add your first bond below.")

    upcoming = get_upcoming_maturities()
    if upcoming:
        st.subheader(f"⏳ Maturing in the next {config.alerts.upcoming_maturity_days} days")
        for m in upcoming:
            st.write(
                f"**{m.issuer}** ({m.bond_type.value}) · {format_currency(m.face_value)} "
                f"on {m.maturity_date} · {m.days_to_maturity} days"
            )

    st.divider()
    add_col, edit_col = st.columns(2)

    with add_col:
        st.subheader("➕ Add Bond")
        with st.form("add_bond_form", clear_on_submit=True):
            issuer = st.text_input("Issuer *", max_chars=255)
            bond_type = st.selectbox("Type *", [t.value for t in BondType], format_func=str.title)
            face_value = st.number_input("Face Value ($) *", min_value=0.01, value=1000.0, step=100.0)
            coupon_rate = st.number_input("Coupon Rate (%) *", min_value=0.0, max_value=100.0, value=4.0, step=0.05)
            maturity_date = st.date_input("Maturity Date *", value=date.today() + timedelta(days=365))
            purchase_price = st.number_input("Purchase Price ($) *", min_value=0.01, value=1000.0, step=10.0)
            purchase_date = st.date_input("Purchase Date *", value=date.today())
            rating = st.text_input("Rating", max_chars=10, placeholder="AA+")
            notes = st.text_area("Notes", max_chars=1000)

            if st.form_submit_button("Add Bond", type="primary"):
                if not issuer.strip():
                    st.error("❌ Issuer is required")
                else:
                    try:
                        create_bond(
                            issuer=issuer.strip(),
                            bond_type=bond_type,
                            face_value=face_value,
                            coupon_rate=coupon_rate,
                            maturity_date=maturity_date,
                            purchase_price=purchase_price,
                            purchase_date=purchase_date,
                            rating=rating.strip() or None,
                            notes=notes.strip() or None,
                        )
                    except RecordValidationError as e:
                        st.error(f"❌ {e}")
                    else:
                        st.success(f"✅ Added {issuer}")
                        celebrate_and_rerun(animation="balloons")

    with edit_col:
        st.subheader("✏️ Update / Remove")
        if not bonds:
            st.caption("Nothing to edit yet.")
            return

        by_label = {f"{b.issuer} · {b.maturity_date}": b for b in bonds}
        bond = by_label[st.selectbox("Bond", list(by_label))]

        with st.form("edit_bond_form"):
            current_price = st.number_input(
                "Current Price ($)", min_value=0.01, value=float(bond.current_value), step=10.0
            )
            coupon_rate = st.number_input(
                "Coupon Rate (%)", min_value=0.0, max_value=100.0, value=float(bond.coupon_rate), step=0.05
            )
            rating = st.text_input("Rating", value=bond.rating or "", max_chars=10)

            if st.form_submit_button("Save Changes", type="primary"):
                changes = {"current_price": current_price, "coupon_rate": coupon_rate}
                if rating.strip():
                    changes["rating"] = rating.strip()
                try:
                    update_bond(bond.id, **changes)
                except (RecordNotFoundError, RecordValidationError) as e:
                    st.error(f"❌ {e}")
                else:
                    celebrate_and_rerun("Bond updated")

        if st.button(f"🗑️ Delete {bond.issuer}", key=f"delete_bond_{bond.id}"):
            try:
                delete_bond(bond.id)
            except RecordNotFoundError as e:
                st.warning(str(e))
            else:
                celebrate_and_rerun("Bond deleted")


# ----------------------------------------------------------------------------
# Cash flow
# ----------------------------------------------------------------------------

def render_cashflow_page():
    """Income/expense ledger with period summary and category breakdown."""
    st.header("💵 Cash Flow")

    period = st.segmented_control(
        "Period",
        ["weekly", "monthly", "quarterly", "yearly"],
        default="monthly",
        format_func=str.title,
    ) or "monthly"

    summary = get_cashflow_summary(period)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_currency(summary.total_income), f"{summary.income_count} entries", delta_color="off")
    col2.metric("Expenses", format_currency(summary.total_expenses), f"{summary.expense_count} entries", delta_color="off")
    col3.metric("Net", format_currency(summary.net_cashflow))
    col4.metric("Savings Rate", format_percentage(summary.savings_rate))

    categories = get_category_totals(period=period)
    if categories:
        cat_df = pd.DataFrame(
            [{"Category": c.category, "Type": c.type.title(), "Total": c.total_amount} for c in categories]
        )
        fig = px.bar(
            cat_df,
            x="Category",
            y="Total",
            color="Type",
            barmode="group",
            color_discrete_map={"Income": "#2ca02c", "Expense": "#d62728"},
        )
        fig.update_layout(height=320, margin=dict(t=20, b=20, l=20, r=20))
        st.plotly_chart(fig)

    st.subheader("📒 Ledger")
    filter_col1, filter_col2, filter_col3 = st.columns(3)
    type_filter = filter_col1.selectbox("Type", ["All", "income", "expense"], format_func=str.title)
    start_date = filter_col2.date_input("From", value=None)
    end_date = filter_col3.date_input("To", value=None)

    entries = list_entries(
        entry_type=None if type_filter == "All" else type_filter,
        start_date=start_date,
        end_date=end_date,
        limit=config.ui.cashflow_page_size,
    )
    if entries:
        ledger_df = pd.DataFrame(
            [
                {
                    "Date": e.date,
                    "Type": e.type.value.title(),
                    "Category": e.category,
                    "Description": e.description,
                    "Amount": e.amount if e.type == CashflowType.INCOME else -e.amount,
                    "Recurring": e.recurring_frequency.value if e.recurring_frequency else "",
                    "Tags": ", ".join(e.tags or []),
                }
                for e in entries
            ]
        )
        st.dataframe(
            ledger_df,
            hide_index=True,
            column_config={"Amount": st.column_config.NumberColumn(format="$%.2f")},
        )
    else:
        st.info("No entries for this filter.")

    st.divider()
    add_col, edit_col = st.columns(2)

    with add_col:
        st.subheader("➕ Add Entry")
        with st.form("add_cashflow_form", clear_on_submit=True):
            entry_type = st.radio("Type *", [t.value for t in CashflowType], horizontal=True, format_func=str.title)
            category = st.text_input("Category *", max_chars=100)
            amount = st.number_input("Amount ($) *", min_value=0.01, value=100.0, step=1.0)
            description = st.text_input("Description *", max_chars=255)
            entry_date = st.date_input("Date *", value=date.today())
            frequency = st.selectbox(
                "Recurring", ["none"] + [f.value for f in RecurringFrequency], format_func=str.title
            )
            tags = st.text_input("Tags", placeholder="comma,separated")

            if st.form_submit_button("Add Entry", type="primary"):
                if not category.strip() or not description.strip():
                    st.error("❌ Category and description are required")
                else:
                    try:
                        create_entry(
                            type=entry_type,
                            category=category.strip(),
                            amount=amount,
                            description=description.strip(),
                            date=entry_date,
                            is_recurring=frequency != "none",
                            recurring_frequency=None if frequency == "none" else frequency,
                            tags=[t.strip() for t in tags.split(",") if t.strip()],
                        )
                    except RecordValidationError as e:
                        st.error(f"❌ {e}")
                    else:
                        celebrate_and_rerun("Entry added")

    with edit_col:
        st.subheader("✏️ Update / Remove")
        if not entries:
            st.caption("Nothing to edit yet.")
            return

        by_label = {f"{e.date} · {e.category} · {format_currency(e.amount)}": e for e in entries}
        entry = by_label[st.selectbox("Entry", list(by_label))]

        with st.form("edit_cashflow_form"):
            amount = st.number_input("Amount ($)", min_value=0.01, value=float(entry.amount), step=1.0)
            category = st.text_input("Category", value=entry.category, max_chars=100)
            description = st.text_input("Description", value=entry.description, max_chars=255)

            if st.form_submit_button("Save Changes", type="primary"):
                changes = {"amount": amount}
                if category.strip():
                    changes["category"] = category.strip()
                if description.strip():
                    changes["description"] = description.strip()
                try:
                    update_entry(entry.id, **changes)
                except (RecordNotFoundError, RecordValidationError) as e:
                    st.error(f"❌ {e}")
                else:
                    celebrate_and_rerun("Entry updated")

        if st.button("🗑️ Delete entry", key=f"delete_entry_{entry.id}"):
            try:
                delete_entry(entry.id)
            except RecordNotFoundError as e:
                st.warning(str(e))
            else:
                celebrate_and_rerun("Entry deleted")


# ----------------------------------------------------------------------------
# Performance
# ----------------------------------------------------------------------------

def render_performance_page():
    """Invested vs current value over purchase dates, cash flow and snapshots."""
    st.header("📈 Performance")

    period = st.segmented_control(
        "Period", ["1m", "3m", "6m", "1y", "all"], default="1y", format_func=str.upper
    ) or "1y"
    performance = compute_performance(period)

    holding_rows = [
        {"Date": p.date, "Asset": label, "Invested": p.invested, "Current Value": p.current_value}
        for label, series in (("Stocks", performance.stocks), ("Bonds", performance.bonds))
        for p in series
    ]
    if holding_rows:
        df = pd.DataFrame(holding_rows).sort_values("Date")
        df = df.groupby("Date", as_index=False)[["Invested", "Current Value"]].sum()
        df[["Invested", "Current Value"]] = df[["Invested", "Current Value"]].cumsum()

        fig = go.Figure()
        fig.add_trace(go.Scatter(x=df["Date"], y=df["Invested"], name="Invested", mode="lines+markers"))
        fig.add_trace(go.Scatter(x=df["Date"], y=df["Current Value"], name="Current Value", mode="lines+markers"))
        fig.update_layout(
            title="Cumulative invested vs current value by purchase date",
            height=380,
            hovermode="x unified",
            yaxis_tickprefix="$",
            margin=dict(t=40, b=20, l=20, r=20),
        )
        st.plotly_chart(fig)
    else:
        st.info("No holdings purchased in this period.")

    if performance.cashflow:
        cf_df = pd.DataFrame(
            [{"Date": p.date, "Income": p.income, "Expenses": -p.expenses, "Net": p.net} for p in performance.cashflow]
        )
        fig = go.Figure()
        fig.add_trace(go.Bar(x=cf_df["Date"], y=cf_df["Income"], name="Income", marker_color="#2ca02c"))
        fig.add_trace(go.Bar(x=cf_df["Date"], y=cf_df["Expenses"], name="Expenses", marker_color="#d62728"))
        fig.add_trace(go.Scatter(x=cf_df["Date"], y=cf_df["Net"].cumsum(), name="Cumulative Net", mode="lines"))
        fig.update_layout(
            title="Cash flow",
            barmode="relative",
            height=340,
            yaxis_tickprefix="$",
            margin=dict(t=40, b=20, l=20, r=20),
        )
        st.plotly_chart(fig)

    st.divider()
    st.subheader("📸 Snapshots")

    if st.button("Capture today's snapshot"):
        snapshot = capture_snapshot()
        st.success(f"✅ Recorded {format_currency(snapshot.total_portfolio_value)} for {snapshot.snapshot_date}")

    snapshots = list_snapshots()
    if snapshots:
        snap_df = pd.DataFrame(
            [
                {
                    "Date": s.snapshot_date,
                    "Stocks": s.total_stocks_value,
                    "Bonds": s.total_bonds_value,
                    "Total": s.total_portfolio_value,
                }
                for s in snapshots
            ]
        )
        fig = px.area(snap_df, x="Date", y=["Stocks", "Bonds"])
        fig.update_layout(height=300, yaxis_tickprefix="$", margin=dict(t=20, b=20, l=20, r=20))
        st.plotly_chart(fig)
    else:
        st.caption("No snapshots recorded yet.")


def main():
    """Main application entry point."""
    configure_page()

    # Render navigation
    page = render_sidebar()

    # Render selected page
    if page == "Dashboard":
        render_dashboard_page()
    elif page == "Stocks":
        render_stocks_page()
    elif page == "Bonds":
        render_bonds_page()
    elif page == "Cash Flow":
        render_cashflow_page()
    elif page == "Performance":
        render_performance_page()


if __name__ == "__main__":
    main()
