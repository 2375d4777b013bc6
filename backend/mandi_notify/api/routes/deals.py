"""Deals API: create a deal and change its status. Both writes notify buyer and seller."""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from mandi_notify.api.deps import get_dispatcher
from mandi_notify.core.errors import MandiNotifyError, error_to_http
from mandi_notify.db.session import get_db
from mandi_notify.services.deals import create_deal, deal_to_dict, update_deal
from mandi_notify.services.push import Dispatcher

router = APIRouter()


class CreateDealBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    buyer_id: str = Field(..., alias="buyerId")
    seller_id: str = Field(..., alias="sellerId")
    commodity: str
    agreed_price: float = Field(..., alias="agreedPrice")
    quantity: float | None = None
    unit: str | None = None


class UpdateDealBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str | None = None
    agreed_price: float | None = Field(None, alias="agreedPrice")
    quantity: float | None = None
    unit: str | None = None


@router.post("/deals")
def post_deal(
    body: CreateDealBody,
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    try:
        row = create_deal(
            db,
            dispatcher,
            body.buyer_id,
            body.seller_id,
            body.commodity,
            body.agreed_price,
            quantity=body.quantity,
            unit=body.unit,
        )
    except MandiNotifyError as e:
        raise error_to_http(e)
    return deal_to_dict(row)


@router.patch("/deals/{deal_id}")
def patch_deal(
    deal_id: int,
    body: UpdateDealBody,
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """Only fields present in the body change. A status change notifies both parties."""
    changes = body.model_dump(exclude_unset=True)
    try:
        row = update_deal(db, dispatcher, deal_id, changes)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return deal_to_dict(row)
