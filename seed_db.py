import asyncio
from datetime import datetime, timedelta, timezone

from app.database import async_session, init_models
from app.models.funding_round import FundingRound, FundingRoundStatus
from app.models.investor import Investor
from app.models.offer import Offer, OfferStatus
from app.models.pitch_room import PitchRoom
from app.models.startup import Startup
from app.models.user import User, UserRole


async def async_main():
    await init_models(reset=True)

    now = datetime.now(timezone.utc)

    async with async_session() as session:
        # Create users
        founder = User(username="ada", email="ada@example.com", name="Ada Founder", role=UserRole.FOUNDER,
                       company="Nimbus Labs", title="CEO", bio="Building weather models for farmers.")
        inv_user_1 = User(username="ben", email="ben@example.com", name="Ben Capital", role=UserRole.INVESTOR,
                          company="Northwind Ventures", title="Partner")
        inv_user_2 = User(username="cleo", email="cleo@example.com", name="Cleo Angel", role=UserRole.INVESTOR,
                          company="Angel", title="Angel investor")
        session.add_all([founder, inv_user_1, inv_user_2])
        await session.flush()

        # Investor profiles
        ben = Investor(user_id=inv_user_1.id, name="Ben Capital", company="Northwind Ventures")
        cleo = Investor(user_id=inv_user_2.id, name="Cleo Angel", company="Angel")
        session.add_all([ben, cleo])

        # Startup and its active round
        startup = Startup(user_id=founder.id, name="Nimbus Labs", tagline="Hyperlocal forecasts for farms",
                          stage="Seed")
        session.add(startup)
        await session.flush()

        fr = FundingRound(startup_id=startup.id, ask_amount=500000, equity_offered=8,
                          status=FundingRoundStatus.ACTIVE, closing_date=now + timedelta(days=14),
                          valuation=6250000, accepted_offers=0, offers_count=2)
        session.add(fr)
        await session.flush()

        # Ben has put terms on the table, Cleo is still reviewing
        session.add_all([
            Offer(funding_round_id=fr.id, investor_id=ben.id, amount=250000, equity_percentage=5,
                  status=OfferStatus.OFFERED, meeting_scheduled=now + timedelta(days=2)),
            Offer(funding_round_id=fr.id, investor_id=cleo.id, amount=0, equity_percentage=0,
                  status=OfferStatus.REVIEWING),
        ])

        # Pitch room between Ada and Ben
        room = PitchRoom(startup_id=startup.id, investor_id=ben.id, startup_user_id=founder.id,
                         investor_user_id=inv_user_1.id, name="Nimbus Labs × Northwind",
                         scheduled_at=now + timedelta(hours=1))
        session.add(room)

        await session.commit()
        print(f"Founder user: {founder.id}")
        print(f"Investor users: {inv_user_1.id}, {inv_user_2.id}")
        print(f"Funding round: {fr.id}  Pitch room: {room.id}")
    print("Database seeded with a founder, two investors and an active round.")

asyncio.run(async_main())
