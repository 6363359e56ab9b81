from fastapi import APIRouter
from jobline.api.v1.endpoints import login, users, applications, document_templates, fee_templates, brokers

api_router = APIRouter()
api_router.include_router(login.router, tags=["login"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
api_router.include_router(document_templates.router, prefix="/document-templates", tags=["document-templates"])
api_router.include_router(fee_templates.router, prefix="/fee-templates", tags=["fee-templates"])
api_router.include_router(brokers.router, prefix="/brokers", tags=["brokers"])
