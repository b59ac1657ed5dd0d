# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/tillpoint/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "tillpoint:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo --tax-rate-bps 800
#   Create a demo store with a few products, a customer and two discount rules.
#
# Sales verification:
# - python -m flask sales verify --store-id 1 [--sale-id 42]
#   Re-check committed-sale invariants (item totals, total formula, receipt uniqueness).
#
# Inventory inspection:
# - python -m flask inventory low-stock --store-id 1
#   List active products at or below their minimum stock level.
# - python -m flask inventory discrepancies --store-id 1
#   List oversells recorded under the clamp policy.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, DiscountRule, Product, Sale
from .models.promotions import DISCOUNT_FIXED_AMOUNT, DISCOUNT_PERCENTAGE
from .services import catalog_service, checkout_service, inventory_service, store_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' to add demo data.")


@system_group.command('seed-demo')
@click.option('--name', default='Main Store', show_default=True, help='Store name')
@click.option('--code', default='MAIN', show_default=True, help='Store code')
@click.option('--tax-rate-bps', type=int, default=800, show_default=True, help='Tax rate in basis points')
@with_appcontext
def seed_demo(name, code, tax_rate_bps):
    """Create a demo store with products, a customer and discount rules."""
    store = store_service.create_store(name, code, tax_rate_bps=tax_rate_bps)

    db.session.add_all([
        Product(store_id=store.id, name="Espresso Beans 1kg", sku="COF-001", barcode="4006381333931",
                price=Decimal("24.50"), cost=Decimal("12.00"), stock_quantity=40, min_stock_level=5),
        Product(store_id=store.id, name="Paper Filters (100)", sku="FIL-100", barcode="4006381333948",
                price=Decimal("3.99"), cost=Decimal("1.10"), stock_quantity=120, min_stock_level=20),
        Product(store_id=store.id, name="Ceramic Mug", sku="MUG-001",
                price=Decimal("10.00"), cost=Decimal("4.25"), stock_quantity=3, min_stock_level=5),
        Customer(store_id=store.id, name="Demo Customer", email="demo@example.com"),
        DiscountRule(store_id=store.id, name="10% off", discount_type=DISCOUNT_PERCENTAGE,
                     discount_value=Decimal("10")),
        DiscountRule(store_id=store.id, name="$5 off orders over $50", discount_type=DISCOUNT_FIXED_AMOUNT,
                     discount_value=Decimal("5"), min_order_amount=Decimal("50")),
    ])
    db.session.commit()

    click.echo(f"PASS Seeded store {store.id} ({store.code}) with demo catalog.")


@click.group('sales')
def sales_group():
    """Committed-sale inspection commands."""


@sales_group.command('verify')
@click.option('--store-id', type=int, required=True, help='Store ID')
@click.option('--sale-id', type=int, help='Verify a single sale')
@click.option('--limit', type=int, default=500, show_default=True, help='Most recent N sales')
@with_appcontext
def verify_sales(store_id, sale_id, limit):
    """Re-check committed-sale invariants; exits non-zero if any sale is inconsistent."""
    if sale_id:
        sale_ids = [sale_id]
    else:
        sale_ids = [
            sid for (sid,) in db.session.query(Sale.id)
            .filter_by(store_id=store_id)
            .order_by(Sale.id.desc())
            .limit(limit)
        ]

    failures = 0
    for sid in sale_ids:
        problems = checkout_service.verify_sale(sid)
        if problems:
            failures += 1
            click.echo(f"FAIL sale {sid}:")
            for problem in problems:
                click.echo(f"   - {problem}")

    click.echo(f"Checked {len(sale_ids)} sale(s), {failures} inconsistent.")
    if failures:
        raise SystemExit(1)


@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('low-stock')
@click.option('--store-id', type=int, required=True, help='Store ID')
@with_appcontext
def low_stock(store_id):
    products = catalog_service.low_stock_products(store_id)
    if not products:
        click.echo("No products at or below minimum stock.")
        return
    for p in products:
        click.echo(f"{p.id:>6}  {p.sku or '-':<12} {p.stock_quantity:>5} / min {p.min_stock_level:<5} {p.name}")


@inventory_group.command('discrepancies')
@click.option('--store-id', type=int, required=True, help='Store ID')
@click.option('--limit', type=int, default=100, show_default=True)
@with_appcontext
def discrepancies(store_id, limit):
    rows = inventory_service.list_stock_discrepancies(store_id, limit=limit)
    if not rows:
        click.echo("No stock discrepancies recorded.")
        return
    for r in rows:
        click.echo(
            f"sale {r.sale_id}: product {r.product_id} requested {r.requested_quantity}, "
            f"on hand {r.available_quantity}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(inventory_group)
