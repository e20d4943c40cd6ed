from fastapi import Depends, Request

from app.gateway.broadcaster import StatusBroadcaster
from app.gateway.gateway import AssistGateway


def get_gateway(request: Request) -> AssistGateway:
    """Gateway instance attached to the running app (see ``app.main``)."""
    return request.app.state.gateway


def get_broadcaster(gateway: AssistGateway = Depends(get_gateway)) -> StatusBroadcaster:
    return gateway.broadcaster
