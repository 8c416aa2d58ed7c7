"""Data factories for generating API payloads."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from faker import Faker


@dataclass
class PayloadFactory:
    """Factory for request bodies accepted by the back office API."""

    seed: int = 1234
    fake: Faker = field(default_factory=lambda: Faker("en_GB"))

    def __post_init__(self):
        self.fake.seed_instance(self.seed)

    def customer(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "name": self.fake.company(),
            "email": self.fake.company_email(),
            "phone": self.fake.phone_number(),
            "address": self.fake.street_address(),
            "city": self.fake.city(),
            "zip_code": self.fake.postcode(),
            "country": "UK",
        }
        payload.update(overrides)
        return payload

    def supplier(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "name": self.fake.company(),
            "contact_name": self.fake.name(),
            "email": self.fake.company_email(),
            "category": "hardware",
            "payment_terms": "30 days",
        }
        payload.update(overrides)
        return payload

    def catalog_item(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "name": f"{self.fake.word().title()} fitting",
            "unit_price_cents": 2500,
            "category": "products",
        }
        payload.update(overrides)
        return payload

    def inventory_item(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "name": f"{self.fake.word().title()} profile",
            "sku": f"SKU-{self.fake.unique.numerify('#####')}",
            "unit_of_measure": "each",
            "reorder_point": 5.0,
            "reorder_quantity": 20.0,
            "cost_cents": 1200,
        }
        payload.update(overrides)
        return payload

    def employee(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "full_name": self.fake.name(),
            "email": self.fake.email(),
            "position": "Installer",
            "hourly_rate_cents": 2000,
        }
        payload.update(overrides)
        return payload

    def quote(
        self,
        customer_id: int,
        items: Optional[List[Dict[str, Any]]] = None,
        **overrides: Any,
    ) -> Dict[str, Any]:
        payload = {
            "customer_id": customer_id,
            "reference": self.fake.catch_phrase(),
            "tax_rate": 20.0,
            "items": items if items is not None else [
                {"description": "Survey and measure", "quantity": 1, "unit_price_cents": 15000},
                {"description": "Installation labour", "quantity": 2.5, "unit_price_cents": 4000},
            ],
        }
        payload.update(overrides)
        return payload

    def invoice(self, customer_id: int, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "customer_id": customer_id,
            "tax_rate": 0.0,
            "items": [{"description": "Call-out charge", "quantity": 1, "unit_price_cents": 10000}],
        }
        payload.update(overrides)
        return payload

    def purchase_order(self, supplier_id: int, items: List[Dict[str, Any]], **overrides: Any) -> Dict[str, Any]:
        payload = {"supplier_id": supplier_id, "tax_rate": 0.0, "items": items}
        payload.update(overrides)
        return payload

    def timesheet(self, employee_id: int, work_date: Optional[date] = None, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "employee_id": employee_id,
            "work_date": (work_date or date.today() - timedelta(days=1)).isoformat(),
            "start_time": "08:00",
            "end_time": "16:30",
            "break_minutes": 30,
        }
        payload.update(overrides)
        return payload

    def expense(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "description": "Fuel",
            "amount_cents": 4500,
            "expense_date": date.today().isoformat(),
            "category": "fuel",
        }
        payload.update(overrides)
        return payload
