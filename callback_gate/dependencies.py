"""FastAPI dependencies for verified callback handlers."""
from fastapi import HTTPException, Request, status

from callback_gate.middleware.signature import CALLBACK_BODY_STATE_KEY
from callback_gate.services.body_buffer import BufferedRequest


def get_buffered_request(request: Request) -> BufferedRequest:
    """
    Dependency to get the verified callback body from request state.

    Usage:
        @app.post("/callback/agGame/bet")
        async def bet(body: Annotated[BufferedRequest, Depends(get_buffered_request)]):
            payload = json.load(body.stream())

    Raises:
        HTTPException: If the route is not behind SignatureMiddleware
    """
    buffered: BufferedRequest | None = getattr(request.state, CALLBACK_BODY_STATE_KEY, None)

    if buffered is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "NOT_VERIFIED",
                "message": "Callback signature was not verified",
            },
        )

    return buffered
