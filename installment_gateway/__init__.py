"""
Installment Gateway - Deferred-Payment Order Engine

A FastAPI-based microservice that lets buyers pay for a purchase in
tranches, tracks the repayment schedule of each order, drives the
buyer-proof / seller-validation workflow and reconciles overdue plans.
"""

__version__ = "0.1.0"
