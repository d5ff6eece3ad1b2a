from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from annapurna.api.deps import require_admin
from annapurna.db.session import get_db
from annapurna.models.user import User
from annapurna.services import catalog_service
from annapurna.services.catalog_service import CatalogResource


def build_catalog_router(resource: CatalogResource) -> APIRouter:
    router = APIRouter(prefix=f"/{resource.name}", tags=["catalog"])

    @router.get("")
    def list_items(db: Session = Depends(get_db)):
        items = catalog_service.list_items(db, resource)
        return {"success": True, "data": [resource.to_dict(i) for i in items]}

    @router.get("/{key}")
    def get_item(key: str, db: Session = Depends(get_db)):
        return {"success": True, "data": resource.to_dict(catalog_service.get_item(db, resource, key))}

    @router.post("", status_code=201)
    def create_item(payload: dict = Body(...), db: Session = Depends(get_db), admin: User = Depends(require_admin)):
        obj = catalog_service.create_item(db, resource, payload)
        return {"success": True, "data": resource.to_dict(obj)}

    @router.put("/{item_id}")
    def update_item(item_id: str, payload: dict = Body(...), db: Session = Depends(get_db),
                    admin: User = Depends(require_admin)):
        obj = catalog_service.update_item(db, resource, item_id, payload)
        return {"success": True, "data": resource.to_dict(obj)}

    @router.delete("/{item_id}")
    def delete_item(item_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
        catalog_service.delete_item(db, resource, item_id)
        return {"success": True, "message": f"{resource.label} deleted"}

    return router


routers = [build_catalog_router(r) for r in catalog_service.RESOURCES.values()]
