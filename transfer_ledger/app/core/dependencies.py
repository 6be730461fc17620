from fastapi import Depends, Request
from sqlmodel import Session

from ..services import LedgerRepository, LedgerService
from .config import get_settings
from .db import get_session
from .logging_config import request_logger


def get_ledger_service(
    request: Request,
    session: Session = Depends(get_session),
) -> LedgerService:
    repository = LedgerRepository(session)
    request_id = getattr(request.state, "request_id", "-")
    return LedgerService(
        session,
        repository,
        logger=request_logger(LedgerService.__module__, request_id),
        settings=get_settings(),
    )
