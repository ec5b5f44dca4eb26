from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.schemas import WeatherReport
from datastore.stores import EntityStore, build_default_entity_store
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_entity_store() -> EntityStore:
    return build_default_entity_store()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    store: EntityStore = Depends(get_entity_store),
) -> HTMLResponse:
    settings = get_settings()
    reports = {item.entity_id: WeatherReport.from_observation(item) for item in store.list_all()}
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "cities": settings.entities,
            "reports": reports,
            "poll_ms": int(settings.ui_poll_seconds * 1000),
        },
    )
