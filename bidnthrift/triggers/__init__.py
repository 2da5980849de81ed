from .binding import BidTriggerBinding
from .price_update import BidCreatedEvent, PriceUpdateOutcome, PriceUpdateTrigger

__all__ = ["BidCreatedEvent", "BidTriggerBinding", "PriceUpdateOutcome", "PriceUpdateTrigger"]
