"""
FastAPI dependencies
"""

from fastapi import Depends

from seatsync.services.repositories import SeatingStore, get_store
from seatsync.services.seating_service import SeatingService

def get_seating_service(store: SeatingStore = Depends(get_store)) -> SeatingService:
    return SeatingService(store)
