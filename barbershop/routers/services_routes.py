# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends

from barbershop.deps import get_store
from barbershop.schemas import ServicePublic, service_public

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(store=Depends(get_store)):
    return [service_public(s) for s in store.list_services(active_only=True)]
