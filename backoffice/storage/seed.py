# ==== DEMO DATA SEEDING ==== #

"""
Realistic demo data for a tenant: parties, catalog, stock, staff and a
handful of documents moved through their lifecycles.

Documents are created through the services so numbering, totals and stock
levels are consistent with what the API would produce.
"""

import datetime as dt
import random
from typing import Any, Dict, List, Optional

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import NotFoundError
from backoffice.business.statuses import InventoryTransactionType, ProjectStatus
from backoffice.observability.logging import ContextualLogger
from backoffice.schemas.admin import TenantCreate
from backoffice.schemas.documents import (
    LineItemIn,
    PaymentCreate,
    PurchaseOrderCreate,
    PurchaseOrderItemIn,
    QuoteCreate,
    ReceiveLine,
    ReceiveRequest,
)
from backoffice.schemas.inventory import InventoryItemCreate, InventoryTransactionCreate
from backoffice.schemas.people import ExpenseCreate, TimesheetCreate
from backoffice.services.company import upsert_company_settings
from backoffice.services.conversion import convert_quote_to_invoice
from backoffice.services.expenses import create_expense
from backoffice.services.inventory import create_item, record_transaction
from backoffice.services.invoicing import InvoiceService
from backoffice.services.parties import create_project
from backoffice.services.purchasing import PurchaseOrderService
from backoffice.services.quotes import QuoteService
from backoffice.services.tenants import create_tenant, get_tenant
from backoffice.services.timesheets import create_timesheet
from backoffice.storage.models import CatalogItem, Customer, Employee, Supplier
from backoffice.storage.repository import TenantRepository


logger = ContextualLogger(__name__)

SEED_USER = "seed"

CATALOG = [
    ("Site survey", 15000, "services"),
    ("Installation labour (per hour)", 4500, "labour"),
    ("Aluminium frame, standard", 32000, "products"),
    ("Double glazed unit 1m2", 18500, "products"),
    ("Delivery and disposal", 7500, "services"),
]

STOCK = [
    ("ALU-FR-STD", "Aluminium frame profile", "m", 12000, 40.0, 10.0, 50.0),
    ("DGU-1M2", "Double glazed unit 1m2", "each", 9000, 12.0, 5.0, 20.0),
    ("SEAL-CLR", "Clear silicone sealant", "tube", 450, 60.0, 24.0, 48.0),
    ("FIX-SCR-50", "Frame fixing screws 50mm (box)", "box", 1200, 8.0, 10.0, 20.0),
]

EXPENSE_CATEGORIES = ["fuel", "tools", "materials", "subsistence", "parking"]


class DemoDataGenerator:
    """Build demo records for one tenant with reproducible randomness."""

    def __init__(self, db: AsyncSession, tenant: str, seed: Optional[int] = None):
        self.db = db
        self.tenant = tenant
        self.random = random.Random(seed)
        self.fake = Faker("en_GB")
        if seed is not None:
            self.fake.seed_instance(seed)

    async def ensure_tenant(self) -> None:
        try:
            await get_tenant(self.db, self.tenant)
        except NotFoundError:
            await create_tenant(self.db, TenantCreate(name=self.tenant, display_name=self.fake.company()))

    async def company(self) -> None:
        await upsert_company_settings(self.db, self.tenant, {
            "company_name": self.fake.company(),
            "address": self.fake.street_address(),
            "city": self.fake.city(),
            "zip_code": self.fake.postcode(),
            "country": "UK",
            "phone": self.fake.phone_number(),
            "email": self.fake.company_email(),
            "vat_number": f"GB{self.random.randint(100000000, 999999999)}",
            "bank_details": f"Sort code {self.fake.numerify('##-##-##')}, account {self.fake.numerify('########')}",
            "default_quote_terms": "Quote valid for 30 days. 50% deposit on acceptance.",
            "default_invoice_terms": "Payment due within 30 days of invoice date.",
            "default_tax_rate": 20.0,
            "currency": "GBP",
        })

    async def customers(self, count: int) -> List[Customer]:
        repo = TenantRepository(Customer, self.db, self.tenant)
        return [
            await repo.create(
                name=self.fake.name() if self.random.random() < 0.6 else self.fake.company(),
                email=self.fake.email(),
                phone=self.fake.phone_number(),
                address=self.fake.street_address(),
                city=self.fake.city(),
                zip_code=self.fake.postcode(),
                country="UK",
                created_by=SEED_USER,
            )
            for _ in range(count)
        ]

    async def suppliers(self, count: int) -> List[Supplier]:
        repo = TenantRepository(Supplier, self.db, self.tenant)
        return [
            await repo.create(
                name=self.fake.company(),
                contact_name=self.fake.name(),
                email=self.fake.company_email(),
                phone=self.fake.phone_number(),
                category=self.random.choice(["glass", "aluminium", "hardware"]),
                payment_terms="30 days",
                active=True,
            )
            for _ in range(count)
        ]

    async def catalog(self) -> List[CatalogItem]:
        repo = TenantRepository(CatalogItem, self.db, self.tenant)
        return [
            await repo.create(name=name, unit_price_cents=price, category=category, active=True)
            for name, price, category in CATALOG
        ]

    async def stock(self, suppliers: List[Supplier]):
        items = []
        for sku, name, unit, cost, opening, reorder_point, reorder_quantity in STOCK:
            item = await create_item(self.db, self.tenant, InventoryItemCreate(
                sku=sku,
                name=name,
                unit_of_measure=unit,
                cost_cents=cost,
                reorder_point=reorder_point,
                reorder_quantity=reorder_quantity,
                preferred_supplier_id=self.random.choice(suppliers).id if suppliers else None,
            ))
            await record_transaction(self.db, self.tenant, InventoryTransactionCreate(
                inventory_item_id=item.id,
                transaction_type=InventoryTransactionType.ADJUSTMENT,
                quantity=opening,
                reference="Opening stock",
            ), SEED_USER)
            items.append(item)
        return items

    async def employees(self, count: int) -> List[Employee]:
        repo = TenantRepository(Employee, self.db, self.tenant)
        return [
            await repo.create(
                full_name=self.fake.name(),
                email=self.fake.email(),
                position=self.random.choice(["Installer", "Surveyor", "Fabricator"]),
                department="Operations",
                hire_date=self.fake.date_between(start_date="-5y", end_date="-30d"),
                hourly_rate_cents=self.random.choice([1800, 2200, 2600]),
                active=True,
            )
            for _ in range(count)
        ]

    async def documents(self, customers, catalog, projects_per_customer: int = 1) -> Dict[str, int]:
        """Quotes in every status, converted invoices and part payments."""
        counts = {"projects": 0, "quotes": 0, "invoices": 0, "payments": 0}
        quotes = QuoteService(self.db, self.tenant, SEED_USER)
        invoices = InvoiceService(self.db, self.tenant, SEED_USER)

        for customer in customers:
            for _ in range(projects_per_customer):
                project = await create_project(self.db, self.tenant, {
                    "name": f"{self.fake.street_name()} {self.random.choice(['windows', 'doors', 'conservatory'])}",
                    "customer_id": customer.id,
                    "status": ProjectStatus.PENDING,
                    "start_date": self.fake.date_between(start_date="-90d", end_date="today"),
                })
                counts["projects"] += 1

                chosen = self.random.sample(catalog, k=self.random.randint(1, 3))
                quote = await quotes.create(QuoteCreate(
                    customer_id=customer.id,
                    project_id=project.id,
                    items=[
                        LineItemIn(catalog_item_id=item.id, quantity=float(self.random.randint(1, 4)))
                        for item in chosen
                    ],
                ))
                counts["quotes"] += 1

                outcome = self.random.random()
                if outcome < 0.2:
                    continue
                await quotes.mark_sent(quote.id)
                if outcome < 0.35:
                    await quotes.reject(quote.id)
                    continue
                if outcome < 0.5:
                    continue

                await quotes.accept(quote.id, customer.name)
                invoice = await convert_quote_to_invoice(self.db, self.tenant, quote.id, user_id=SEED_USER)
                counts["invoices"] += 1

                if self.random.random() < 0.6:
                    amount = invoice.total_cents if self.random.random() < 0.5 else invoice.total_cents // 2
                    if amount > 0:
                        await invoices.record_payment(invoice.id, PaymentCreate(amount_cents=amount))
                        counts["payments"] += 1
        return counts

    async def purchasing(self, suppliers, stock_items) -> int:
        orders = PurchaseOrderService(self.db, self.tenant, SEED_USER)
        created = 0
        for supplier in suppliers:
            chosen = self.random.sample(stock_items, k=min(2, len(stock_items)))
            order = await orders.create(PurchaseOrderCreate(
                supplier_id=supplier.id,
                items=[
                    PurchaseOrderItemIn(
                        inventory_item_id=item.id,
                        quantity=float(self.random.randint(5, 20)),
                        unit_price_cents=item.cost_cents,
                    )
                    for item in chosen
                ],
            ))
            created += 1
            if self.random.random() < 0.7:
                await orders.issue(order.id)
                if self.random.random() < 0.5:
                    line = order.items[0]
                    await orders.receive(order.id, ReceiveRequest(
                        lines=[ReceiveLine(item_id=line.id, quantity=line.quantity)],
                        reference=f"DN-{self.fake.numerify('#####')}",
                    ))
        return created

    async def time_and_expenses(self, employees) -> Dict[str, int]:
        timesheets = expenses = 0
        today = dt.date.today()
        for employee in employees:
            for days_ago in range(1, 6):
                start_hour = self.random.choice([7, 8, 9])
                await create_timesheet(self.db, self.tenant, TimesheetCreate(
                    employee_id=employee.id,
                    work_date=today - dt.timedelta(days=days_ago),
                    start_time=dt.time(start_hour, 0),
                    end_time=dt.time(start_hour + 8, 30),
                    break_minutes=30,
                ))
                timesheets += 1
            await create_expense(self.db, self.tenant, ExpenseCreate(
                description=self.fake.sentence(nb_words=4).rstrip("."),
                amount_cents=self.random.randint(500, 15000),
                expense_date=today - dt.timedelta(days=self.random.randint(1, 30)),
                category=self.random.choice(EXPENSE_CATEGORIES),
            ), SEED_USER)
            expenses += 1
        return {"timesheets": timesheets, "expenses": expenses}


async def seed_demo_data(
    db: AsyncSession,
    tenant: str,
    customers: int = 8,
    suppliers: int = 3,
    employees: int = 4,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a demo data set for ``tenant`` (created if missing).

    Returns:
        Counts of records created, by kind
    """
    generator = DemoDataGenerator(db, tenant, seed)
    await generator.ensure_tenant()
    await generator.company()

    customer_rows = await generator.customers(customers)
    supplier_rows = await generator.suppliers(suppliers)
    catalog_rows = await generator.catalog()
    stock_rows = await generator.stock(supplier_rows)
    employee_rows = await generator.employees(employees)

    summary: Dict[str, Any] = {
        "tenant": tenant,
        "customers": len(customer_rows),
        "suppliers": len(supplier_rows),
        "catalog_items": len(catalog_rows),
        "inventory_items": len(stock_rows),
        "employees": len(employee_rows),
    }
    summary.update(await generator.documents(customer_rows, catalog_rows))
    summary["purchase_orders"] = await generator.purchasing(supplier_rows, stock_rows)
    summary.update(await generator.time_and_expenses(employee_rows))

    logger.info("Demo data seeded", **summary)
    return summary
