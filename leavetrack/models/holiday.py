from sqlalchemy import Column, Integer, String, Date
from leavetrack.database import Base

class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
