"""Typed shapes of PeerCat API payloads.

These are ``TypedDict`` declarations: responses are handed back exactly as the
server sent them (camelCase keys included), so the types document the shape
without validating it.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, TypedDict

GenerationMode = Literal["production", "demo"]
KeyEnvironment = Literal["live", "test"]
HistoryStatus = Literal["pending", "completed", "refunded"]
OnChainStatus = Literal["pending", "processing", "completed", "failed", "refunded"]


class Model(TypedDict):
    id: str
    name: str
    description: str
    provider: str
    maxPromptLength: int
    outputFormat: str
    outputResolution: str
    priceUsd: float


class ModelsResponse(TypedDict):
    models: List[Model]


class ModelPrice(TypedDict):
    model: str
    priceUsd: float
    priceSol: float
    priceSolWithSlippage: float


class PriceResponse(TypedDict):
    solPrice: float
    slippageTolerance: float
    updatedAt: str
    treasury: str
    models: List[ModelPrice]


class GenerationUsage(TypedDict):
    creditsUsed: float
    balanceRemaining: float


class GenerateResult(TypedDict):
    id: str
    imageUrl: str
    ipfsHash: Optional[str]
    model: str
    mode: GenerationMode
    usage: GenerationUsage


class Balance(TypedDict):
    credits: float
    totalDeposited: float
    totalSpent: float
    totalWithdrawn: float
    totalGenerated: int


class HistoryItem(TypedDict):
    id: str
    endpoint: str
    model: Optional[str]
    creditsUsed: float
    requestId: Optional[str]
    status: HistoryStatus
    createdAt: str
    completedAt: Optional[str]


class Pagination(TypedDict):
    total: int
    limit: int
    offset: int
    hasMore: bool


class HistoryResponse(TypedDict):
    items: List[HistoryItem]
    pagination: Pagination


class ApiKey(TypedDict):
    id: str
    name: Optional[str]
    keyPrefix: str
    environment: KeyEnvironment
    rateLimitTier: str
    createdAt: str
    lastUsedAt: Optional[str]
    revoked: bool


class CreateKeyResult(TypedDict):
    id: str
    key: str  # only returned once
    keyPrefix: str
    name: Optional[str]
    environment: KeyEnvironment
    createdAt: str
    warning: str


class KeysResponse(TypedDict):
    keys: List[ApiKey]


class PaymentAmount(TypedDict):
    sol: float
    lamports: int
    usd: float


class PromptSubmission(TypedDict):
    submissionId: str
    promptHash: str
    paymentAddress: str
    requiredAmount: PaymentAmount
    memo: str
    model: str
    slippageTolerance: float
    expiresAt: str
    instructions: Dict[str, str]


class _OnChainStatusRequired(TypedDict):
    txSignature: str
    status: OnChainStatus


class OnChainGenerationStatus(_OnChainStatusRequired, total=False):
    # Filled in as the job progresses.
    model: str
    createdAt: str
    imageUrl: str
    ipfsHash: str
    completedAt: str
    error: str
    message: str


class ApiErrorBody(TypedDict):
    type: str
    code: str
    message: str
    param: Optional[str]


class ApiErrorResponse(TypedDict):
    error: ApiErrorBody


__all__ = [
    "GenerationMode",
    "KeyEnvironment",
    "HistoryStatus",
    "OnChainStatus",
    "Model",
    "ModelsResponse",
    "ModelPrice",
    "PriceResponse",
    "GenerationUsage",
    "GenerateResult",
    "Balance",
    "HistoryItem",
    "Pagination",
    "HistoryResponse",
    "ApiKey",
    "CreateKeyResult",
    "KeysResponse",
    "PaymentAmount",
    "PromptSubmission",
    "OnChainGenerationStatus",
    "ApiErrorBody",
    "ApiErrorResponse",
]
