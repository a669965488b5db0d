"""
Business services.

Services own transactions and raise the typed exceptions in
``budget_hotel.core.exceptions``; repositories only query and flush.
"""
