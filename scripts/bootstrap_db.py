"""Create database schema and seed a demo project, lead, and call for development."""
from __future__ import annotations

import asyncio
from datetime import date

from crm_gateway.db.session import SessionLocal, engine
from crm_gateway.models.base import Base
from crm_gateway.models.lead import Lead
from crm_gateway.models.project import Project
from crm_gateway.repositories import calls as calls_repo
from crm_gateway.services.calls import session_url_for

PROJECTS = [
	{
		"id": 1,
		"name": "Bosphorus Gardens",
		"description": "Sea-view residences with social facilities and 24/7 security.",
		"price_range": "8.5M - 14M TRY",
		"delivery_date": date(2026, 6, 30),
		"address": "Sariyer, Istanbul",
		"docs_url": "https://example.com/bosphorus-gardens",
		"faq_json": {
			"1": {"question": "Is there a payment plan?", "answer": "Yes, 36 months with a 30% down payment."},
			"2": {"question": "Is parking included?", "answer": "Every unit has one indoor parking space."},
		},
		"docs_json": {
			"brochure": {"name": "Brochure", "url": "https://example.com/bosphorus-gardens/brochure.pdf"},
			"floor_plans": {"name": "Floor plans", "url": "https://example.com/bosphorus-gardens/plans.pdf"},
		},
	},
]

LEADS = [
	{
		"id": 1,
		"project_id": 1,
		"full_name": "Ayse Yilmaz",
		"phone_e164": "+905551112233",
		"source": "seed",
		"consent_kvkk": True,
		"consent_text": "Granted on the landing page form.",
		"utm": {"utm_source": "seed", "utm_campaign": "demo"},
	},
]


async def create_schema() -> None:
	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


async def seed_projects() -> None:
	"""Insert or update demo projects."""

	async with SessionLocal() as session:
		async with session.begin():
			for data in PROJECTS:
				project = await session.get(Project, data["id"])
				if project is None:
					session.add(Project(**data))
					continue
				for key, value in data.items():
					setattr(project, key, value)


async def seed_leads() -> None:
	"""Insert or update demo leads."""

	async with SessionLocal() as session:
		async with session.begin():
			for data in LEADS:
				lead = await session.get(Lead, data["id"])
				if lead is None:
					session.add(Lead(**data))
					continue
				for key, value in data.items():
					setattr(lead, key, value)


async def seed_call() -> int:
	"""Create a fresh call for the first demo lead and return its identifier."""

	async with SessionLocal() as session:
		async with session.begin():
			call = await calls_repo.create(session, lead_id=LEADS[0]["id"])
			return call.id


async def main() -> None:
	await create_schema()
	await seed_projects()
	await seed_leads()
	call_id = await seed_call()
	print("Database schema ensured and demo data seeded.")
	print(f"Demo call {call_id}: {session_url_for(call_id)}")


if __name__ == "__main__":
	asyncio.run(main())
