import datetime as dt
from leavetrack.schemas.hydra import CamelModel

class HolidayRead(CamelModel):
    id: int
    date: dt.date
    name: str

class HolidayCreate(CamelModel):
    date: dt.date
    name: str
