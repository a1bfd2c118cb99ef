import logging
from typing import Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .database import get_engine, is_backend_configured
from .errors import BackendError
from .mock_data import default_landing_settings
from .models import LANDING_SETTINGS_ID, LandingSettingsRow, utcnow
from .results import Fetched
from .schemas import LandingSettings, LandingSettingsUpdate

log = logging.getLogger(__name__)

_LIST_FIELDS = ("categories_list", "best_selling_product_ids", "trending_product_ids", "popular_category_ids")
_FLAG_DEFAULTS = {"show_featured_products": True, "show_categories": True, "top_banner_active": False}


def db_row_to_settings(row: Union[LandingSettingsRow, dict]) -> LandingSettings:
    data = row if isinstance(row, dict) else row.model_dump()
    values = {k: v for k, v in data.items() if k in LandingSettings.model_fields}
    for field in _LIST_FIELDS:
        values[field] = list(values.get(field) or [])
    for field, default in _FLAG_DEFAULTS.items():
        if values.get(field) is None:
            values[field] = default
    values["page_title"] = values.get("page_title") or ""
    return LandingSettings(**values)


def settings_to_db_row(settings: Union[LandingSettingsUpdate, LandingSettings, dict]) -> dict:
    """Only the fields the caller supplied become columns."""
    if isinstance(settings, dict):
        data = settings
    else:
        data = settings.model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if k in LandingSettingsUpdate.model_fields}


def get_landing_settings() -> Fetched[LandingSettings]:
    if not is_backend_configured():
        log.info("Using default landing settings, backend not configured")
        return Fetched(default_landing_settings(), "fallback")

    try:
        with Session(get_engine()) as session:
            row = session.get(LandingSettingsRow, LANDING_SETTINGS_ID)
            settings = db_row_to_settings(row) if row else None
    except (SQLAlchemyError, ValidationError) as e:
        log.error("Error fetching landing settings: %s", e)
        log.info("Falling back to default landing settings")
        return Fetched(default_landing_settings(), "fallback", str(e))
    if settings is None:
        log.info("No landing settings row yet, using defaults")
        return Fetched(default_landing_settings(), "fallback")
    return Fetched(settings, "live")


def update_landing_settings(updates: LandingSettingsUpdate) -> Fetched[LandingSettings]:
    changes = settings_to_db_row(updates)
    if not is_backend_configured():
        log.info("Demo mode: landing settings update simulated")
        merged = default_landing_settings().model_copy(update={**changes, "updated_at": utcnow()})
        return Fetched(merged, "simulated")

    log.info("Updating landing settings")
    try:
        with Session(get_engine()) as session:
            row = session.get(LandingSettingsRow, LANDING_SETTINGS_ID)
            if row is None:
                seed = default_landing_settings(utcnow()).model_dump(exclude={"id", "created_at", "updated_at"})
                row = LandingSettingsRow(id=LANDING_SETTINGS_ID, **seed)
            for column, value in changes.items():
                setattr(row, column, value)
            row.updated_at = utcnow()
            session.add(row)
            session.commit()
            session.refresh(row)
            settings = db_row_to_settings(row)
    except SQLAlchemyError as e:
        log.error("Error updating landing settings: %s", e)
        raise BackendError(f"Could not update landing settings: {e}") from e
    log.info("Landing settings updated")
    return Fetched(settings, "live")
