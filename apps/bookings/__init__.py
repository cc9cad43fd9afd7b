"""Bookings app package.

This app holds the booking admission-control and availability engine:
unit-count availability for room types, admission of new bookings
under a row lock, cancellation release, price verification at checkout
and the lookup and verification tokens that let guests manage a booking
without an account.
"""
