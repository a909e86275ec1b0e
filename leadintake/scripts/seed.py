"""Sample data seeder: countries, sales agents and the default rule documents."""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leadintake.core.config import settings
from leadintake.core.default_settings import DEFAULT_CRM_SETTINGS, EU_COUNTRIES
from leadintake.models import Agent, Country, CrmSetting

# (code, name, is_operational, country_gdpr)
COUNTRIES = [
    ("AE", "United Arab Emirates", True, False),
    ("SA", "Saudi Arabia", True, False),
    ("QA", "Qatar", True, False),
    ("FR", "France", True, True),
    ("KW", "Kuwait", False, False),
    ("BH", "Bahrain", False, False),
    ("OM", "Oman", False, False),
    ("US", "United States", False, False),
    ("GB", "United Kingdom", False, True),
]

# (first, last, title)
AGENTS = [
    ("Amira", "Haddad", "Senior Account Manager"),
    ("Omar", "Farouk", "Account Manager"),
    ("Camille", "Durand", "Sales Manager France"),
    ("Khalid", "Al Saud", "Sales Executive KSA"),
    ("Layla", "Nasser", "Sales Executive UAE"),
    ("Youssef", "Bennani", "MENA Business Developer"),
    ("Anna", "Schmidt", "Europe Sales Executive"),
    ("James", "Carter", "International Sales Manager"),
]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        print("Seeding CRM sample data")

        # Leads reference agents, so clear them together
        await session.execute(
            text("TRUNCATE TABLE crm_leads, crm_agents, crm_countries, crm_settings CASCADE")
        )
        await session.commit()
        print("Cleared existing data")

        # 1. Rule documents, from the same defaults the app seeds at startup
        for key, value in DEFAULT_CRM_SETTINGS.items():
            session.add(CrmSetting(setting_key=key, setting_value=value))
        await session.flush()
        print(f"Created {len(DEFAULT_CRM_SETTINGS)} crm_settings documents")

        # 2. Countries; EU members are GDPR-flagged but not yet operational
        seen = set()
        for code, name, operational, gdpr in COUNTRIES:
            session.add(
                Country(
                    country_code=code,
                    country_name=name,
                    is_operational=operational,
                    country_gdpr=gdpr,
                )
            )
            seen.add(code)
        for code in EU_COUNTRIES:
            if code in seen:
                continue
            session.add(
                Country(
                    country_code=code,
                    country_name=code,
                    is_operational=False,
                    country_gdpr=True,
                )
            )
        await session.flush()
        print(f"Created {len(seen | set(EU_COUNTRIES))} countries")

        # 3. Sales agents covering every assignment tier
        for first, last, title in AGENTS:
            session.add(
                Agent(
                    first_name=first,
                    last_name=last,
                    email=f"{first.lower()}.{last.lower().replace(' ', '')}@example.com",
                    title=title,
                    status="active",
                )
            )
        await session.flush()
        print(f"Created {len(AGENTS)} agents")

        await session.commit()
        print("Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
