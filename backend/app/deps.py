from __future__ import annotations
from typing import AsyncGenerator
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.services.container import Services

def get_services(request: Request) -> Services:
    return request.app.state.services

async def get_session(services: Services = Depends(get_services)) -> AsyncGenerator[AsyncSession, None]:
    if not services.db.configured:
        raise HTTPException(status_code=503, detail="Database not configured")
    async with services.db.session() as session:
        yield session
