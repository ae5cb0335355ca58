"""
Database initialization script.

Creates all tables and the portfolio user, and optionally seeds sample data.
Safe to run multiple times (idempotent).
"""

import logging
import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.session import init_db
from db.models import BondType, CashflowType, RecurringFrequency
from services import (
    RecordValidationError,
    create_bond,
    create_entry,
    create_stock,
    list_bonds,
    list_entries,
    update_stock,
)


logger = logging.getLogger(__name__)

SAMPLE_STOCKS = [
    {"symbol": "AAPL", "company_name": "Apple Inc.", "quantity": 10, "purchase_price": 150.00,
     "current_price": 175.00, "purchase_date": date(2024, 1, 15), "sector": "Technology"},
    {"symbol": "GOOGL", "company_name": "Alphabet Inc.", "quantity": 5, "purchase_price": 2800.00,
     "current_price": 2950.00, "purchase_date": date(2024, 2, 1), "sector": "Technology"},
    {"symbol": "MSFT", "company_name": "Microsoft Corporation", "quantity": 8, "purchase_price": 300.00,
     "current_price": 340.00, "purchase_date": date(2024, 1, 20), "sector": "Technology"},
]


def _sample_bonds(today: date) -> list[dict]:
    # Maturities are relative so the sample stays valid
    return [
        {"issuer": "US Treasury", "bond_type": BondType.TREASURY, "face_value": 10000.00,
         "coupon_rate": 4.25, "maturity_date": today + timedelta(days=3 * 365),
         "purchase_price": 9850.00, "purchase_date": date(2024, 3, 1), "rating": "AAA"},
        {"issuer": "Acme Corp", "bond_type": BondType.CORPORATE, "face_value": 5000.00,
         "coupon_rate": 5.5, "maturity_date": today + timedelta(days=60),
         "purchase_price": 5100.00, "purchase_date": date(2024, 4, 10), "rating": "BBB+"},
    ]


def _sample_cashflow(today: date) -> list[dict]:
    return [
        {"type": CashflowType.INCOME, "category": "Salary", "amount": 5200.00,
         "description": "Monthly salary", "date": today - timedelta(days=3),
         "is_recurring": True, "recurring_frequency": RecurringFrequency.MONTHLY},
        {"type": CashflowType.EXPENSE, "category": "Rent", "amount": 1800.00,
         "description": "Apartment rent", "date": today - timedelta(days=2),
         "is_recurring": True, "recurring_frequency": RecurringFrequency.MONTHLY},
        {"type": CashflowType.EXPENSE, "category": "Groceries", "amount": 240.50,
         "description": "Weekly groceries", "date": today - timedelta(days=1),
         "tags": ["food"]},
    ]


def create_sample_data(today: date | None = None) -> None:
    """
    Create sample stocks, bonds and cash flow for demo purposes.

    Existing stock symbols are skipped; bonds and cash flow are only
    seeded into empty tables.
    """
    today = today or date.today()

    for data in SAMPLE_STOCKS:
        data = dict(data)
        current_price = data.pop("current_price")
        try:
            stock = create_stock(**data)
        except RecordValidationError:
            logger.info(f"Skipping {data['symbol']}: already in portfolio")
            continue
        update_stock(stock.id, current_price=current_price)
        print(f"  Added stock: {stock.symbol}")

    if not list_bonds():
        for data in _sample_bonds(today):
            bond = create_bond(**data, today=today)
            print(f"  Added bond: {bond.issuer}")

    if not list_entries(limit=1):
        for data in _sample_cashflow(today):
            entry = create_entry(**data)
            print(f"  Added {entry.type.value}: {entry.category}")


def main():
    """Initialize database and optionally create sample data."""
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Initialize portfolio database")
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Create sample data for testing",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables first",
    )
    args = parser.parse_args()

    db = init_db(if_drop=args.drop)
    print("✅ Database initialized")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        print("\n📦 Creating sample data...")
        create_sample_data()
        print("✅ Sample data created")


if __name__ == "__main__":
    main()
