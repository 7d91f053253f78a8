"""
PitchRoom – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them
through a single ``from app.models import *`` import.
"""

from app.models.user import User                      # noqa: F401
from app.models.startup import Startup                # noqa: F401
from app.models.investor import Investor              # noqa: F401
from app.models.funding_round import FundingRound     # noqa: F401
from app.models.offer import Offer                    # noqa: F401
from app.models.offer_event import OfferEvent         # noqa: F401
from app.models.cap_table import CapTableEntry        # noqa: F401
from app.models.pitch_room import PitchRoom           # noqa: F401
from app.models.message import PitchRoomMessage       # noqa: F401
from app.models.notification import Notification      # noqa: F401
