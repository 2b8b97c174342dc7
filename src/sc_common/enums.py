"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class PositionStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"            # closed by trader
    LIQUIDATED = "LIQUIDATED"


class RoundOutcome(str, Enum):
    PENDING = "PENDING"
    UP = "UP"
    DOWN = "DOWN"
    DRAW = "DRAW"


class CustodyEntryType(str, Enum):
    # Simulated funding
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Generic debit/credit legs of a transfer
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"


class EventType(str, Enum):
    MARKET_INITIALIZED = "MARKET_INITIALIZED"
    PRICE_UPDATED = "PRICE_UPDATED"
    POSITION_OPENED = "POSITION_OPENED"
    POSITION_CLOSED = "POSITION_CLOSED"
    POSITION_LIQUIDATED = "POSITION_LIQUIDATED"
    ROUND_STARTED = "ROUND_STARTED"
    BET_PLACED = "BET_PLACED"
    ROUND_RESOLVED = "ROUND_RESOLVED"
    BET_CLAIMED = "BET_CLAIMED"
    FEES_COLLECTED = "FEES_COLLECTED"
    ROUND_CLOSED = "ROUND_CLOSED"
    PROTOCOL_PAUSED = "PROTOCOL_PAUSED"
    PROTOCOL_UNPAUSED = "PROTOCOL_UNPAUSED"
    TREASURY_ROTATED = "TREASURY_ROTATED"
    CUSTODY_DRAINED = "CUSTODY_DRAINED"
