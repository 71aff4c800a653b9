"""
Registry API - local backend for the donor/request pages.
Following Cosmic Python pattern: thin API dispatches commands and delegates reads to views.
"""
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Depends, FastAPI, File, HTTPException, Response, UploadFile
from pydantic import BaseModel
import logging
import uvicorn

import config
from bloodconnect.bootstrap import Registry, bootstrap
from bloodconnect.domain import commands
from bloodconnect.domain.model import BLOOD_GROUPS, InvalidSubmission
from bloodconnect.service_layer import transfer, views

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="BloodConnect Registry API",
    description="Register donors, post blood requests and search the donor directory on this device",
    version="1.0.0"
)


class DonorSubmission(BaseModel):
    """Donor registration form. Missing fields are reported by the registry itself."""
    name: str = ""
    phone: str = ""
    blood: str = ""
    city: str = ""
    last_donated: str = ""
    note: str = ""


class RequestSubmission(BaseModel):
    """Blood request form."""
    name: str = ""
    phone: str = ""
    blood: str = ""
    city: str = ""
    hospital: str = ""
    note: str = ""


@lru_cache()
def get_registry() -> Registry:
    """Registry for this process, loaded from device storage on first use."""
    return bootstrap()


def _ui_state(registry: Registry) -> dict:
    message = registry.channel.current
    return {
        "message": {"text": message.text, "kind": message.kind} if message else None,
        "view": registry.channel.view,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "bloodconnect-registry-api",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/api/v1/blood-groups")
def get_blood_groups():
    return list(BLOOD_GROUPS)


@app.get("/api/v1/donors")
def get_donors(q: str = "", blood: str = "", city: str = "", registry: Registry = Depends(get_registry)):
    """
    Search donors by name/phone (q), blood group and city.

    Empty parameters leave that field unconstrained.
    """
    donors = views.search_donors(registry.uow, query=q, blood=blood, city=city)
    return {"count": len(donors), "donors": donors}


@app.post("/api/v1/donors", status_code=201)
def register_donor(submission: DonorSubmission, registry: Registry = Depends(get_registry)):
    cmd = commands.RegisterDonor(**submission.model_dump())
    try:
        [donor] = registry.handle(cmd)
    except InvalidSubmission as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"donor": donor.to_dict(), **_ui_state(registry)}


@app.delete("/api/v1/donors/{donor_id}")
def remove_donor(donor_id: str, registry: Registry = Depends(get_registry)):
    [removed] = registry.handle(commands.RemoveDonor(donor_id=donor_id))
    return {"removed": removed, **_ui_state(registry)}


@app.get("/api/v1/requests")
def get_requests(registry: Registry = Depends(get_registry)):
    requests = views.list_requests(registry.uow)
    return {"count": len(requests), "requests": requests}


@app.post("/api/v1/requests", status_code=201)
def post_request(submission: RequestSubmission, registry: Registry = Depends(get_registry)):
    cmd = commands.PostRequest(**submission.model_dump())
    try:
        [request] = registry.handle(cmd)
    except InvalidSubmission as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"request": request.to_dict(), **_ui_state(registry)}


@app.post("/api/v1/requests/{request_id}/toggle-fulfilled")
def toggle_fulfilled(request_id: str, registry: Registry = Depends(get_registry)):
    [request] = registry.handle(commands.ToggleFulfilled(request_id=request_id))
    if request is None:
        raise HTTPException(status_code=404, detail=f"Request {request_id} not found")
    return {"request": request.to_dict()}


@app.delete("/api/v1/requests/{request_id}")
def remove_request(request_id: str, registry: Registry = Depends(get_registry)):
    [removed] = registry.handle(commands.RemoveRequest(request_id=request_id))
    return {"removed": removed, **_ui_state(registry)}


@app.delete("/api/v1/requests")
def clear_requests(registry: Registry = Depends(get_registry)):
    [cleared] = registry.handle(commands.ClearRequests())
    return {"cleared": cleared, **_ui_state(registry)}


@app.get("/api/v1/summary")
def get_summary(registry: Registry = Depends(get_registry)):
    return views.summary(registry.uow)


@app.get("/api/v1/export")
def export_data(registry: Registry = Depends(get_registry)):
    """Download both collections as a pretty-printed JSON document."""
    body = transfer.export_json(registry.uow)
    registry.channel.notify("Data exported")
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{config.get_export_filename()}"'},
    )


@app.post("/api/v1/import")
async def import_data(file: UploadFile = File(...), registry: Registry = Depends(get_registry)):
    """
    Replace local data with an exported document.

    Collections present as lists in the document replace the local ones
    wholesale; a malformed document changes nothing.
    """
    try:
        result = await registry.importer.import_from(file.read)
    except transfer.ImportInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except transfer.ImportFailed as e:
        raise HTTPException(status_code=400, detail=f"Could not read the file: {e}")

    logger.info(f"Imported {file.filename}: {result}")
    return {"imported": result, **_ui_state(registry)}


@app.get("/api/v1/notification")
def get_notification(registry: Registry = Depends(get_registry)):
    """Current status message (None once expired) and the view to show."""
    return _ui_state(registry)


def main():
    uvicorn.run(app, **config.get_api_host_and_port())


if __name__ == "__main__":
    main()
