from fastapi import APIRouter, Depends

from ..rate_card import RateCard, get_active_rate_card

router = APIRouter(prefix="/rate-card", tags=["rate-card"])


@router.get("", response_model=RateCard)
def get_rate_card(rate_card: RateCard = Depends(get_active_rate_card)):
    return rate_card


@router.get("/machines")
def list_machines(rate_card: RateCard = Depends(get_active_rate_card)):
    return [
        {
            "id": m.id,
            "name": m.name,
            "speed_sph": m.speed_sph,
            "hourly_rate": m.hourly_rate,
            "ctp_rate": m.ctp_rate,
        }
        for m in rate_card.machines
    ]


@router.get("/destinations")
def list_destinations(rate_card: RateCard = Depends(get_active_rate_card)):
    return [
        {"id": d.id, "name": d.name, "country": d.country, "overseas": d.overseas}
        for d in rate_card.destinations
    ]
