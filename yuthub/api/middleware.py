from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request
from starlette import status
from starlette.responses import JSONResponse, Response

from yuthub.core.context import ORGANIZATION_HEADER, organization_scope, parse_organization_id


async def organization_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    # The header is only a hint for repositories; require_auth_context rebinds the
    # organization from the verified membership.
    try:
        organization_id = parse_organization_id(request.headers.get(ORGANIZATION_HEADER))
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": f"Invalid {ORGANIZATION_HEADER} header"},
        )

    with organization_scope(organization_id):
        return await call_next(request)
