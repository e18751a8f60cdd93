"""
api/routes/v1/dashboard.py -- Aggregated user metrics for the dashboard.

Returns a single payload suitable for driving dashboard widgets:
  - Total number of accounts
  - Number of admins and plain users

This is a read-only aggregate route -- no mutations here.
"""

from fastapi import APIRouter, Depends

from api.models import DashboardResponse
from auth.dependencies import get_claims, get_service
from auth.models import SubjectClaims
from auth.service import AuthService

# Auth policy:
# - GET /api/v1/dashboard: requires auth -- any signed-in user, admin or not
router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    claims: SubjectClaims = Depends(get_claims),
    service: AuthService = Depends(get_service),
) -> DashboardResponse:
    """Return account counts.

    Response:
      total_users -- number of accounts
      admins      -- accounts with role "admin"
      users       -- accounts with role "user"
    """
    return DashboardResponse(**service.dashboard(claims))
