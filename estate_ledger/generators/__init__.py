"""Seed data generators for project inventory and buyers."""

from estate_ledger.generators.inventory import BuyerGenerator, InventoryGenerator

__all__ = ["BuyerGenerator", "InventoryGenerator"]
