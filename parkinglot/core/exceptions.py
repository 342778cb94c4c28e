from fastapi import HTTPException, status


class ParkingError(HTTPException):
    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An error occurred",
    ):
        super().__init__(status_code=status_code, detail=detail)

    def __str__(self) -> str:
        return self.detail


class InvalidArgumentError(ParkingError):
    def __init__(self, detail: str = "Invalid argument"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(ParkingError):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidStateError(ParkingError):
    def __init__(self, detail: str = "Operation not allowed in the current state"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConflictError(ParkingError):
    def __init__(self, detail: str = "Reservation conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class IncompatibleError(ParkingError):
    def __init__(self, detail: str = "Vehicle class is not allowed in this spot"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ConfigurationError(ParkingError):
    def __init__(self, detail: str = "Required collaborator is not configured"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
