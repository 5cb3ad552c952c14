import asyncio

import azure.functions as func

from shared.relay import handle


async def main(req: func.HttpRequest) -> func.HttpResponse:
    """Relay ``/api/fetch?url=...`` to the linkding instance named in ``url``."""
    result = await asyncio.to_thread(handle, req.method, req.url, dict(req.headers))
    headers = dict(result.headers)
    mimetype = headers.pop("Content-Type", None)
    return func.HttpResponse(
        body=result.body,
        status_code=result.status,
        headers=headers,
        mimetype=mimetype,
    )
