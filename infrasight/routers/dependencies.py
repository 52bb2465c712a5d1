from typing import Optional
from fastapi import Header, Request
from infrasight.config import DEFAULT_ORG_ID

def get_org_id(x_org_id: Optional[str] = Header(None, max_length=100)) -> str:
    if x_org_id is None or not x_org_id.strip():
        return DEFAULT_ORG_ID
    return x_org_id.strip()

def get_store(request: Request):
    return request.app.state.store

def get_cache(request: Request):
    return request.app.state.cache

def get_invalidator(request: Request):
    return request.app.state.invalidator

def get_metrics(request: Request):
    return request.app.state.metrics
