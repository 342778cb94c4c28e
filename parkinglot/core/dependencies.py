from typing import Annotated

from fastapi import Depends, Request

from parkinglot.services.facility import ParkingFacility


def get_facility(request: Request) -> ParkingFacility:
    return request.app.state.facility


# Type aliases for cleaner dependency injection
Facility = Annotated[ParkingFacility, Depends(get_facility)]
