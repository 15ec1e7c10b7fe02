from fastapi import APIRouter, Depends

from apps.settings.schemas import SettingsResponse, SettingsUpdate
from apps.settings.services import WorkshopSettingsService, get_settings_service
from apps.auth.services import get_current_user, get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()


@router.get(
    "/",
    response_model=SettingsResponse,
    summary="Get workshop settings",
    description="Workshop details, currency and VAT rate used on invoices"
)
def get_settings(
    service: WorkshopSettingsService = Depends(get_settings_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.as_response()


@router.put(
    "/",
    response_model=SettingsResponse,
    summary="Update workshop settings",
    description="Upsert one or more settings (Owner only)"
)
def update_settings(
    settings_update: SettingsUpdate,
    service: WorkshopSettingsService = Depends(get_settings_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.update(settings_update.values)
