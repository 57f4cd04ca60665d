from __future__ import annotations

from pydantic import BaseModel, Field, constr


class ProposalCreateInput(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=200)
    amount: int = Field(gt=0, description="Amount in base units")
    recipient: constr(strip_whitespace=True, min_length=1)


class TokenTransferInput(BaseModel):
    recipient: constr(strip_whitespace=True, min_length=1)
    amount: int = Field(gt=0, description="Amount in token base units")


class TreasuryDepositInput(BaseModel):
    amount: int = Field(gt=0, description="Amount in base units")
