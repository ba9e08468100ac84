"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from club_payments.service import PaymentStatusService


def get_payment_service(request: Request) -> PaymentStatusService:
    """The service instance built at application start."""
    return request.app.state.payment_service


# Type aliases for cleaner dependency injection
PaymentService = Annotated[PaymentStatusService, Depends(get_payment_service)]
