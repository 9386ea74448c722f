"""
sealbid - Sealed-bid timelock auctions

A second-price (Vickrey) auction where:
- Bids are timelock-encrypted until a deadline slot
- Revealed bids are checked against SHA3-256 commitments
- The highest valid bidder wins and pays the second-highest bid
- Deposits of honest losers are refunded
"""

__version__ = "0.1.0"
