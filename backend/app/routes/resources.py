"""
HeartSmiles Backend — Resource Dispatcher
===========================================

What:  Catch-all route that hands every remaining request to the resource
       collaborator chosen by the RouteTable, or to the 404 branch.
Why:   Dispatch by one table (instead of one FastAPI mount per prefix)
       means `/api/staff/...` and `/staff/...` run literally the same code
       against the same collaborator instance.
How:   Registered LAST, after health/info routes. Resolves the (already
       normalized) path, builds a HandlerRequest and converts the
       collaborator's HandlerResponse back into an HTTP response.
       Exceptions from collaborators propagate to the Error Responder.
"""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from app.middleware.errors import not_found_response
from app.services.collaborators import HandlerRequest, HandlerResponse
from app.services.route_table import RouteTable

logger = logging.getLogger(__name__)

router = APIRouter()

DISPATCH_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


async def _handler_body(request: Request):
    state_body = getattr(request.state, "body", None)
    if state_body is not None:
        return state_body
    raw = await request.body()
    return raw or None


def _to_response(result: HandlerResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status, headers=result.headers)
    return JSONResponse(status_code=result.status, content=result.body, headers=result.headers)


@router.api_route("/{full_path:path}", methods=DISPATCH_METHODS, include_in_schema=False)
async def dispatch(request: Request, full_path: str) -> Response:
    table: RouteTable = request.app.state.route_table
    path = request.scope["path"]
    match = table.resolve(path)
    if match is None:
        return not_found_response(request, getattr(request.state, "original_url", None))

    handler_request = HandlerRequest(
        method=request.method,
        path=match.remainder,
        query=request.scope.get("query_string", b"").decode("latin-1"),
        headers={key: value for key, value in request.headers.items()},
        body=await _handler_body(request),
        resource=match.entry.segment,
    )
    logger.debug("Dispatching %s %s to /%s", request.method, path, match.entry.segment)
    result = await match.handler.handle(handler_request)
    return _to_response(result)
