"""Folder router: CRUD for the folder registry."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from server.models.requests import CreateFolderRequest, UpdateFolderRequest
from services.folders.FolderService import FolderNotFound
from shared.dependencies.auth import verify_api_key

folder_router = APIRouter(prefix="/api/folders")


@folder_router.post("", dependencies=[Depends(verify_api_key)], tags=["Folders"])
async def handle_create_folder(request: Request, body: CreateFolderRequest) -> JSONResponse:
    try:
        folder = await request.app.state.services.folder_service.create_folder(
            name=body.name, owner_id=body.owner_id, is_admin=body.is_admin, description=body.description,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(status_code=201, content=folder.model_dump())


@folder_router.get("", dependencies=[Depends(verify_api_key)], tags=["Folders"])
async def handle_list_folders(request: Request, owner_id: str, is_admin: bool = False) -> JSONResponse:
    folders = await request.app.state.services.folder_service.get_folders(owner_id=owner_id, is_admin=is_admin)
    return JSONResponse(content=[f.model_dump() for f in folders])


@folder_router.put("/{folder_id}", dependencies=[Depends(verify_api_key)], tags=["Folders"])
async def handle_update_folder(request: Request, folder_id: str, body: UpdateFolderRequest) -> JSONResponse:
    try:
        folder = await request.app.state.services.folder_service.update_folder(
            folder_id=folder_id, owner_id=body.owner_id, name=body.name, description=body.description,
        )
    except FolderNotFound:
        raise HTTPException(status_code=404, detail=f"Folder {folder_id} not found.")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return JSONResponse(content=folder.model_dump())


@folder_router.delete("/{folder_id}", dependencies=[Depends(verify_api_key)], tags=["Folders"])
async def handle_delete_folder(request: Request, folder_id: str, owner_id: str) -> JSONResponse:
    try:
        await request.app.state.services.folder_service.delete_folder(folder_id=folder_id, owner_id=owner_id)
    except FolderNotFound:
        raise HTTPException(status_code=404, detail=f"Folder {folder_id} not found.")
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return JSONResponse(content={"status": "deleted", "folder_id": folder_id})
