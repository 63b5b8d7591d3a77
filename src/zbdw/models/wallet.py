"""Pydantic models for ZBD wallet API results."""

from typing import Literal, Optional

from pydantic import BaseModel


class ReceiveInvoiceResult(BaseModel):
    id: str
    invoice: str
    payment_hash: Optional[str] = None
    expires_at: str
    amount_sats: int
    status: str
    timestamp: str


class StaticChargeResult(BaseModel):
    charge_id: str
    lightning_address: Optional[str] = None
    lnurl: Optional[str] = None
    status: str
    timestamp: str


class SendPaymentResult(BaseModel):
    payment_id: str
    amount_sats: int
    fee_sats: int
    status: str
    preimage: Optional[str] = None
    timestamp: str


class PaymentDetail(BaseModel):
    id: str
    kind: Literal["send", "receive"]
    amount_sats: int
    fee_sats: int
    status: str
    preimage: Optional[str] = None
    timestamp: str

    def to_json_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.kind,
            "amount_sats": self.amount_sats,
            "fee_sats": self.fee_sats,
            "status": self.status,
            "timestamp": self.timestamp,
        }
        if self.preimage is not None:
            data["preimage"] = self.preimage
        return data


class WithdrawCreateResult(BaseModel):
    withdraw_id: str
    lnurl: str
    status: str
    amount_sats: int


class WithdrawStatusResult(BaseModel):
    withdraw_id: str
    status: str
    amount_sats: int
