"""
Portfolio Manager - Main Entry Point.

A single-user personal finance tracker for stocks, bonds and cash flow,
with a REST API, a Streamlit dashboard and this CLI.

Usage:
    # Initialize database
    python main.py init
    python main.py init --sample-data

    # Run the REST API (http://localhost:5000/api, docs at /docs)
    python main.py serve
    python main.py serve --port 8000 --reload

    # Launch dashboard
    python main.py dashboard

    # Record holdings
    python main.py add-stock AAPL --name "Apple Inc." --quantity 10 --price 150 --date 2024-01-15 --sector Technology
    python main.py add-bond "US Treasury" --type treasury --face-value 10000 --coupon 4.25 \
        --maturity 2030-05-15 --price 9850 --date 2024-03-01

    # Record income and expenses
    python main.py add-cashflow income Salary 5200 --description "Monthly salary" --recurring monthly
    python main.py add-cashflow expense Groceries 85.40 --tags food weekly

    # Reports
    python main.py summary
    python main.py cashflow --period quarterly
    python main.py alerts

    # Record today's totals
    python main.py snapshot
"""

import argparse
import logging
import sys
from datetime import date

from config import config
from db import BondType, CashflowType, RecurringFrequency, init_db
from services import RecordValidationError


def _parse_date(value: str | None) -> date:
    return date.fromisoformat(value) if value else date.today()


def cmd_init(args):
    """Initialize the database."""
    db = init_db(args.db_url, if_drop=args.if_drop)
    if args.if_drop:
        print("⚠️ Existing tables dropped.")
    print("✅ Database initialized successfully")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        from db.init_db import create_sample_data

        print("\n📦 Creating sample data...")
        create_sample_data()
        print("✅ Sample data created")


def cmd_serve(args):
    """Run the REST API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        reload=args.reload,
    )


def cmd_dashboard(args):
    """Launch the Streamlit dashboard."""
    import subprocess

    subprocess.run(
        [
            sys.executable,
            "-m",
            "streamlit",
            "run",
            "ui/app.py",
        ]
    )


def cmd_add_stock(args):
    """Add a stock holding."""
    from services import create_stock, update_stock

    init_db()
    try:
        stock = create_stock(
            symbol=args.symbol,
            company_name=args.name or args.symbol.upper(),
            quantity=args.quantity,
            purchase_price=args.price,
            purchase_date=_parse_date(args.date),
            sector=args.sector,
            notes=args.notes,
        )
        if args.current_price:
            stock = update_stock(stock.id, current_price=args.current_price)
    except RecordValidationError as e:
        print(f"❌ {e}")
        return 1

    print(f"\n✅ Added {stock.symbol}: {stock.quantity:g} @ ${stock.purchase_price:,.2f}")
    print(f"   Current value: ${stock.current_value:,.2f}")


def cmd_add_bond(args):
    """Add a bond holding."""
    from services import create_bond

    init_db()
    try:
        bond = create_bond(
            issuer=args.issuer,
            bond_type=args.type,
            face_value=args.face_value,
            coupon_rate=args.coupon,
            maturity_date=date.fromisoformat(args.maturity),
            purchase_price=args.price,
            purchase_date=_parse_date(args.date),
            rating=args.rating,
            notes=args.notes,
        )
    except RecordValidationError as e:
        print(f"❌ {e}")
        return 1

    print(f"\n✅ Added {bond.bond_type.value} bond {bond.issuer}")
    print(f"   Matures {bond.maturity_date} ({bond.days_to_maturity} days)")
    print(f"   Annual coupon: ${bond.annual_coupon:,.2f}")


def cmd_add_cashflow(args):
    """Record an income or expense."""
    from services import create_entry

    init_db()
    try:
        entry = create_entry(
            type=args.type,
            category=args.category,
            amount=args.amount,
            description=args.description or args.category,
            date=_parse_date(args.date),
            is_recurring=args.recurring is not None,
            recurring_frequency=args.recurring,
            tags=args.tags,
        )
    except RecordValidationError as e:
        print(f"❌ {e}")
        return 1

    sign = "+" if entry.type == CashflowType.INCOME else "-"
    print(f"\n✅ Recorded {entry.type.value}: {sign}${entry.amount:,.2f} ({entry.category}) on {entry.date}")


def cmd_summary(args):
    """Show portfolio summary."""
    from analytics import compute_allocation, compute_overview

    init_db()

    overview = compute_overview()
    allocation = compute_allocation()

    print("\n" + "=" * 50)
    print("📊 PORTFOLIO SUMMARY")
    print("=" * 50)

    print(f"\n💰 Value")
    print(f"   Invested:        ${overview.total_invested:>12,.2f}")
    print(f"   Current Value:   ${overview.total_current_value:>12,.2f}")
    print(f"   Gain/Loss:       ${overview.total_gain_loss:>+12,.2f}")
    print(f"   Return:          {overview.total_return_percentage:>+12.1f}%")

    print(f"\n📍 Holdings ({overview.total_assets})")
    print(
        f"   Stocks  {overview.stocks.count:>3} | ${overview.stocks.current_value:>12,.2f} "
        f"| {overview.stocks.percentage:>5.1f}% | P&L ${overview.stocks.gain_loss:>+10,.2f}"
    )
    print(
        f"   Bonds   {overview.bonds.count:>3} | ${overview.bonds.current_value:>12,.2f} "
        f"| {overview.bonds.percentage:>5.1f}% | P&L ${overview.bonds.gain_loss:>+10,.2f}"
    )
    print(f"   Annual coupon income: ${overview.bonds.annual_income:,.2f}")

    if allocation.stock_sectors:
        print(f"\n🏭 Stock Sectors")
        for s in allocation.stock_sectors:
            print(f"   {s.name:<20} ${s.value:>12,.2f} {s.percentage:>6.1f}%")

    print(f"\n💵 Cash Flow (last {config.alerts.recent_cashflow_days} days)")
    print(f"   Income:          ${overview.cashflow.recent_income:>12,.2f}")
    print(f"   Expenses:        ${overview.cashflow.recent_expenses:>12,.2f}")
    print(f"   Net:             ${overview.cashflow.net_cashflow:>+12,.2f}")

    print("\n" + "=" * 50)


def cmd_cashflow(args):
    """Show cash flow summary and category breakdown."""
    from services import get_cashflow_summary, get_category_totals

    init_db()

    summary = get_cashflow_summary(args.period)
    categories = get_category_totals(period=args.period)

    print(f"\n💵 Cash Flow Summary ({summary.period})")
    print("-" * 50)
    print(f"   Income:        ${summary.total_income:>12,.2f}  ({summary.income_count} entries)")
    print(f"   Expenses:      ${summary.total_expenses:>12,.2f}  ({summary.expense_count} entries)")
    print(f"   Net:           ${summary.net_cashflow:>+12,.2f}")
    print(f"   Savings Rate:  {summary.savings_rate:>12.1f}%")

    if categories:
        print("\n📊 By Category")
        print("-" * 50)
        for c in categories:
            print(f"   {c.category:<18} {c.type:<8} ${c.total_amount:>11,.2f}  x{c.transaction_count}")


def cmd_alerts(args):
    """Show bond maturity and price movement alerts."""
    from analytics import AlertSeverity, compute_alerts

    init_db()

    alerts = compute_alerts()
    if not alerts:
        print("✅ No alerts.")
        return

    print(f"\n🔔 Alerts ({len(alerts)})")
    print("-" * 50)
    for alert in alerts:
        icon = "🔴" if alert.severity == AlertSeverity.HIGH else "🟡"
        print(f"   {icon} {alert.message}")


def cmd_snapshot(args):
    """Record today's portfolio totals."""
    from analytics import capture_snapshot

    init_db()

    snapshot = capture_snapshot()
    print(f"\n✅ Snapshot for {snapshot.snapshot_date}")
    print(f"   Portfolio value: ${snapshot.total_portfolio_value:,.2f}")
    print(f"   Gain/Loss:       ${snapshot.total_gain_loss:+,.2f}")


def main():
    """Main CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Personal Portfolio Manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    init = subparsers.add_parser("init", help="Initialize database")
    init.add_argument("--db-url", help="Custom database URL", default=None)
    init.add_argument("--if-drop", action="store_true", help="Drop existing tables before creating")
    init.add_argument("--sample-data", action="store_true", help="Seed demo stocks, bonds and cash flow")

    # serve command
    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", help=f"Bind address (default: {config.server.host})")
    serve.add_argument("--port", type=int, help=f"Port (default: {config.server.port})")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    # dashboard command
    subparsers.add_parser("dashboard", help="Launch Streamlit dashboard")

    # add-stock command
    add_stock = subparsers.add_parser("add-stock", help="Add a stock holding")
    add_stock.add_argument("symbol", help="Ticker symbol")
    add_stock.add_argument("--name", help="Company name (default: symbol)")
    add_stock.add_argument("--quantity", type=float, required=True, help="Number of shares")
    add_stock.add_argument("--price", type=float, required=True, help="Purchase price per share")
    add_stock.add_argument("--current-price", type=float, help="Current price per share")
    add_stock.add_argument("--date", help="Purchase date (YYYY-MM-DD, default: today)")
    add_stock.add_argument("--sector", help="Sector")
    add_stock.add_argument("--notes", help="Notes")

    # add-bond command
    add_bond = subparsers.add_parser("add-bond", help="Add a bond holding")
    add_bond.add_argument("issuer", help="Issuer name")
    add_bond.add_argument("--type", choices=[t.value for t in BondType], required=True)
    add_bond.add_argument("--face-value", type=float, required=True, help="Par value")
    add_bond.add_argument("--coupon", type=float, required=True, help="Annual coupon rate in percent")
    add_bond.add_argument("--maturity", required=True, help="Maturity date (YYYY-MM-DD)")
    add_bond.add_argument("--price", type=float, required=True, help="Total purchase price")
    add_bond.add_argument("--date", help="Purchase date (YYYY-MM-DD, default: today)")
    add_bond.add_argument("--rating", help="Credit rating")
    add_bond.add_argument("--notes", help="Notes")

    # add-cashflow command
    add_cashflow = subparsers.add_parser("add-cashflow", help="Record income or expense")
    add_cashflow.add_argument("type", choices=[t.value for t in CashflowType])
    add_cashflow.add_argument("category", help="Category (e.g. Salary, Rent)")
    add_cashflow.add_argument("amount", type=float, help="Amount")
    add_cashflow.add_argument("--description", help="Description (default: category)")
    add_cashflow.add_argument("--date", help="Entry date (YYYY-MM-DD, default: today)")
    add_cashflow.add_argument(
        "--recurring", choices=[f.value for f in RecurringFrequency], help="Recurring frequency"
    )
    add_cashflow.add_argument("--tags", nargs="*", help="Tags")

    # summary command
    subparsers.add_parser("summary", help="Show portfolio summary")

    # cashflow command
    cashflow = subparsers.add_parser("cashflow", help="Show cash flow summary")
    cashflow.add_argument(
        "--period", choices=["weekly", "monthly", "quarterly", "yearly"], default="monthly"
    )

    # alerts command
    subparsers.add_parser("alerts", help="Show portfolio alerts")

    # snapshot command
    subparsers.add_parser("snapshot", help="Record today's portfolio totals")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "serve": cmd_serve,
        "dashboard": cmd_dashboard,
        "add-stock": cmd_add_stock,
        "add-bond": cmd_add_bond,
        "add-cashflow": cmd_add_cashflow,
        "summary": cmd_summary,
        "cashflow": cmd_cashflow,
        "alerts": cmd_alerts,
        "snapshot": cmd_snapshot,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
