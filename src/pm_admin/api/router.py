"""Admin REST API: settlement, treasury and ledger views, admin JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.database import get_db_session
from src.pm_common.enums import MystTransactionType
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import require_admin
from src.pm_ledger.application.service import LedgerApplicationService
from src.pm_settlement.application.schemas import ResolveRequest
from src.pm_settlement.application.service import ResolutionApplicationService
from src.pm_settlement.domain.config import SettlementConfig
from src.pm_treasury.application.schemas import TransferRequest, TransferResponse
from src.pm_treasury.application.service import TreasuryApplicationService

router = APIRouter(prefix="/admin", tags=["admin"])

# Invalid fee configuration fails here, at import, before the app serves anything
_resolution_service = ResolutionApplicationService(SettlementConfig.from_settings(settings))
_treasury_service = TreasuryApplicationService()
_ledger_service = LedgerApplicationService()


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


@router.post("/predictions/{prediction_id}/resolve")
async def resolve_prediction(
    prediction_id: str,
    body: ResolveRequest,
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _resolution_service.resolve(
        db,
        prediction_id,
        winning_option_index=body.winning_option_index,
        winning_option=body.winning_option,
    )
    resp = success_response(data.model_dump(), request)
    resp.message = f"Prediction resolved by {admin}"
    return resp


@router.get("/predictions/{prediction_id}/audit")
async def audit_prediction(
    prediction_id: str,
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _resolution_service.audit(db, prediction_id)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Treasury
# ---------------------------------------------------------------------------


@router.get("/treasury/pools")
async def get_pool_balances(
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _treasury_service.get_pool_balances(db)
    return success_response(data.model_dump(), request)


@router.post("/treasury/transfer")
async def transfer_between_pools(
    body: TransferRequest,
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _treasury_service.transfer(
        db, body.from_pool, body.to_pool, body.amount_micros
    )
    return success_response(TransferResponse.from_result(result).model_dump(), request)


@router.get("/treasury/invariants")
async def verify_pool_invariants(
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _treasury_service.verify_invariants(db)
    return success_response(data.model_dump(), request)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/myst")
async def get_user_myst(
    user_id: str,
    admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    tx_type: MystTransactionType | None = Query(None, description="Filter by transaction type"),
) -> ApiResponse:
    data = await _ledger_service.get_user_myst(
        db, user_id, cursor, limit, tx_type.value if tx_type else None
    )
    return success_response(data.model_dump(), request)
