# =======================================================================================
# keycustody/api/routes/preferences.py - Remembered Actor Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import ActorPreference
from ...services.preference_service import PreferenceService
from ..dependencies import get_preference_service

router = APIRouter(prefix="/preferences")


@router.get("/actor", response_model=ActorPreference)
def get_actor(service: PreferenceService = Depends(get_preference_service)):
    return service.load()


@router.put("/actor", response_model=ActorPreference)
def save_actor(preference: ActorPreference, service: PreferenceService = Depends(get_preference_service)):
    return service.save(preference)
