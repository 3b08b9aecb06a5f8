from datetime import datetime
from typing import Optional

from vitalsync.modules.vitals.schemas import LatestVitals
from vitalsync.shared.constants import AccountStatus
from vitalsync.shared.schemas import CamelModel


class ProfileOut(CamelModel):
    id: str
    full_name: str
    phone_number: Optional[str] = None
    status: AccountStatus
    created_at: datetime
    last_seen: Optional[datetime] = None


class PatientDetail(CamelModel):
    profile: ProfileOut
    current: LatestVitals | None = None
