# backend/contracts/errors.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Rejection reasons raised by the sale contracts. Every failure aborts the
# whole call; the ledger restores state before the exception leaves it.

from __future__ import annotations


class SaleError(Exception):
    """Base class for every contract rejection.

    `reason` is a stable identifier for scripts and the console; the message
    carries the human-readable detail.
    """

    reason = "SaleError"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"{self.reason}: {detail}" if detail else self.reason)


# ----------------------------- Purchase flow ---------------------------------


class SaleSuspended(SaleError):
    reason = "SaleSuspended"


class EventNotActive(SaleError):
    reason = "EventNotActive"


class InvalidQuantity(SaleError):
    reason = "InvalidQuantity"


class InvalidProof(SaleError):
    reason = "InvalidProof"


class WhitelistAllowanceExceeded(SaleError):
    reason = "WhitelistAllowanceExceeded"


class PerWalletLimitExceeded(SaleError):
    reason = "PerWalletLimitExceeded"


class GlobalLimitExceeded(SaleError):
    reason = "GlobalLimitExceeded"


class BotBlocked(SaleError):
    reason = "BotBlocked"


class InsufficientPayment(SaleError):
    reason = "InsufficientPayment"


class InsufficientAllowance(SaleError):
    reason = "InsufficientAllowance"


class SaleKindMismatch(SaleError):
    reason = "SaleKindMismatch"


# ----------------------------- Administration --------------------------------


class Unauthorized(SaleError):
    reason = "Unauthorized"


class InvalidMerkleRoot(SaleError):
    reason = "InvalidMerkleRoot"


class LengthMismatch(SaleError):
    reason = "LengthMismatch"


class UnknownSaleKind(SaleError):
    reason = "UnknownSaleKind"


class UnknownSaleEvent(SaleError):
    reason = "UnknownSaleEvent"


# ----------------------------- Host / ledger ---------------------------------


class InsufficientFunds(SaleError):
    reason = "InsufficientFunds"


class InvalidAmount(SaleError):
    reason = "InvalidAmount"


class InsufficientBalance(SaleError):
    reason = "InsufficientBalance"


class UnknownContract(SaleError):
    reason = "UnknownContract"


class InvalidAddress(SaleError):
    reason = "InvalidAddress"
