# Marketplace Routers Module
# Exports all modular API routers for the marketplace

from routers.campaigns import router as campaigns_router
from routers.influencers import router as influencers_router
from routers.invitations import router as invitations_router
from routers.proof_of_work import router as proof_of_work_router
from routers.notifications import router as notifications_router
from routers.admin import router as admin_router

__all__ = [
    'campaigns_router',
    'influencers_router',
    'invitations_router',
    'proof_of_work_router',
    'notifications_router',
    'admin_router',
]
