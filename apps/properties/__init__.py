"""Properties app package.

This app holds the inventory side of the booking engine: properties,
their guest-facing policies, room types and the physical room units
whose active count is the capacity ceiling for availability math.
"""
