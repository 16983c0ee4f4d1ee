from fastapi import APIRouter, HTTPException, Request

from privacy_distro.api.models import (
    ActivityResponse,
    BalanceResponse,
    FundRequest,
    FundResponse,
    LogResponse,
    PayoutRequest,
    PayoutResponse,
    QueueResponse,
    RecipientRequest,
    RecipientResponse,
    WalletResponse,
)
from privacy_distro.core.amounts import decimal_to_lamports, lamports_to_sol
from privacy_distro.core.models import Recipient
from privacy_distro.service import PrivateCashService

router = APIRouter(tags=["Private Cash"])


def get_service(request: Request) -> PrivateCashService:
    """Dependency to retrieve the initialized PrivateCashService from app state."""
    service = getattr(request.app.state, "service", None)
    if not service:
        raise HTTPException(status_code=500, detail="private cash service not initialized")
    return service


def _recipient_response(recipient: Recipient) -> RecipientResponse:
    return RecipientResponse(
        id=recipient.id,
        address=recipient.address,
        amount_lamports=recipient.amount_lamports,
        amount=recipient.amount_sol,
    )


def _wallet_response(service: PrivateCashService) -> WalletResponse:
    state = service.wallet.state
    return WalletResponse(
        connected=state.connected,
        address=state.address,
        deposit_address=service.owner.address,
    )


@router.post("/fund", response_model=FundResponse)
async def fund(request: Request, req: FundRequest):
    """
    Transfer `amount` SOL plus the fee buffer from the signing wallet to the
    deposit wallet, then deposit `amount` into the pool.
    """
    service = get_service(request)
    result = await service.fund(req.amount)
    return FundResponse(**result.model_dump())


@router.post("/payout", response_model=PayoutResponse)
async def payout(request: Request, req: PayoutRequest):
    """
    Withdraw to each recipient in order.

    Without `recipients` the queued recipients are paid and the queue is
    cleared on success. The batch is rejected as a whole if any item is invalid.
    """
    service = get_service(request)
    recipients = None
    if req.recipients is not None:
        recipients = [
            Recipient(address=item.address.strip(), amount_lamports=decimal_to_lamports(item.amount))
            for item in req.recipients
        ]
    report = await service.payout(recipients)
    return PayoutResponse(
        results=report.results,
        pool_balance_lamports=report.pool_balance_lamports,
        completed=report.completed,
    )


@router.get("/balance", response_model=BalanceResponse)
async def balance(request: Request):
    """Re-fetch the private pool balance from the relay."""
    service = get_service(request)
    lamports = await service.get_balance()
    return BalanceResponse(
        pool_balance_lamports=lamports,
        pool_balance=lamports_to_sol(lamports),
        last_synced_at=service.balance.last_synced_at,
    )


@router.get("/recipients", response_model=QueueResponse)
async def list_recipients(request: Request):
    service = get_service(request)
    return QueueResponse(
        recipients=[_recipient_response(r) for r in service.queue.items],
        total_lamports=service.queue.total_lamports,
    )


@router.post("/recipients", response_model=RecipientResponse, status_code=201)
async def add_recipient(request: Request, req: RecipientRequest):
    service = get_service(request)
    return _recipient_response(service.add_recipient(req.address, req.amount))


@router.delete("/recipients/{recipient_id}", status_code=204)
async def remove_recipient(request: Request, recipient_id: str):
    service = get_service(request)
    if not service.remove_recipient(recipient_id):
        raise HTTPException(status_code=404, detail=f"No queued recipient {recipient_id}")


@router.get("/logs", response_model=LogResponse)
async def logs(request: Request):
    """Relay log, newest first."""
    return LogResponse(entries=get_service(request).activity.entries)


@router.get("/activity", response_model=ActivityResponse)
async def activity(request: Request):
    """Completed deposits and payouts, newest first."""
    return ActivityResponse(entries=get_service(request).activity.activity)


@router.get("/wallet", response_model=WalletResponse)
async def wallet(request: Request):
    return _wallet_response(get_service(request))


@router.post("/wallet/connect", response_model=WalletResponse)
async def connect_wallet(request: Request):
    service = get_service(request)
    await service.connect_wallet()
    return _wallet_response(service)


@router.post("/wallet/disconnect", response_model=WalletResponse)
async def disconnect_wallet(request: Request):
    service = get_service(request)
    await service.disconnect_wallet()
    return _wallet_response(service)
