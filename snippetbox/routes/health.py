"""
Snippetbox - Liveness Route
============================

What:  GET /ping answers "OK" without touching sessions or the database.
Why:   Load balancers need a check that stays cheap and never sets cookies,
       so it only passes through the standard chain.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    return "OK"
