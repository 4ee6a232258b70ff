"""Reporting API endpoints for lease-reports

This module provides financial report endpoints over the leasing dataset:
summary totals, monthly breakdowns, per-customer listings, car-brand
breakdowns, filtered payment listings, customer payment history and
dashboard statistics. Access to every endpoint requires a bearer
credential.

Filters are validated before any query runs. All report handlers delegate
to service functions, which read through a single repository."""
