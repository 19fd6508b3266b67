#!/usr/bin/env python
"""
Seed script: creates a demo gift card whose code matches a Square GAN.

Usage:
    python seed.py [GAN] [AMOUNT]
"""
import sys
from decimal import Decimal

from giftcard_webhooks.db import crud
from giftcard_webhooks.db.session import SessionLocal


def main() -> None:
    gan = sys.argv[1] if len(sys.argv) > 1 else "7783320001001635"
    amount = Decimal(sys.argv[2]) if len(sys.argv) > 2 else Decimal("25.00")
    db = SessionLocal()
    try:
        card = crud.create_gift_card(db, code=gan, amount=amount)
        print("=== Demo Gift Card Seeded ===")
        print(f"Gift card id : {card.id}")
        print(f"GAN          : {card.code}")
        print(f"Balance      : {card.current_balance}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
