"""Generic error endpoint.

Learn: Reverse proxies and the frontend can send users here when
something broke. It always answers with the same bare 500 problem
body the app returns for unhandled exceptions.
"""

from fastapi import APIRouter

from todoapi.errors import UNEXPECTED_TITLE, problem

router = APIRouter()


@router.get("/error", include_in_schema=False)
async def error_page():
    return problem(500, UNEXPECTED_TITLE)
